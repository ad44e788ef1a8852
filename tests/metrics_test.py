from prometheus_client.registry import CollectorRegistry

from memcached_cli.metrics.base import (
    COMMANDS,
    DATA_SOURCE_METRICS,
    ERRORS,
    RECONNECTS,
)
from memcached_cli.metrics.prometheus import PrometheusMetricsCollector


def test_prometheus_metrics_collector() -> None:
    registry = CollectorRegistry()
    collector = PrometheusMetricsCollector(namespace="memcached", registry=registry)
    collector.init_metrics(DATA_SOURCE_METRICS, namespace="cli")
    # Initializing twice is a no-op
    collector.init_metrics(DATA_SOURCE_METRICS, namespace="cli")

    collector.metric_inc(COMMANDS, labels={"command": "get"})
    collector.metric_inc(COMMANDS, labels={"command": "get"})
    collector.metric_inc(COMMANDS, labels={"command": "set"})
    collector.metric_inc(RECONNECTS)

    assert collector.get_counters() == {
        COMMANDS: 3.0,
        RECONNECTS: 1.0,
        ERRORS: 0.0,
    }
    assert (
        registry.get_sample_value(
            "memcached_cli_commands_total", labels={"command": "get"}
        )
        == 2.0
    )
    assert registry.get_sample_value("memcached_cli_reconnects_total") == 1.0
