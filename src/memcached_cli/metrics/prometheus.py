from typing import Dict, List, Optional, Union

from prometheus_client import REGISTRY, Counter
from prometheus_client.registry import CollectorRegistry

from memcached_cli.metrics.base import BaseMetricsCollector, MetricDefinition


class PrometheusMetricsCollector(BaseMetricsCollector):
    def __init__(
        self,
        namespace: str = "",
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        super().__init__(namespace=namespace)
        self._registry: CollectorRegistry = registry or REGISTRY
        self._counters: Dict[str, Counter] = {}

    def init_metrics(
        self,
        metrics: List[MetricDefinition],
        namespace: str = "",
    ) -> None:
        namespace = "_".join(x for x in (self._namespace, namespace) if x)
        for metric in metrics:
            if metric.name in self._counters:
                continue
            self._counters[metric.name] = Counter(
                name=metric.name,
                documentation=metric.documentation,
                labelnames=tuple(metric.labelnames),
                registry=self._registry,
                namespace=namespace,
            )

    def metric_inc(
        self,
        key: str,
        value: Union[float, int] = 1,
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        counter = self._counters[key]
        (counter.labels(**labels) if labels else counter).inc(value)

    def get_counters(self) -> Dict[str, float]:
        """
        Totals per metric, summing all the label combinations
        """
        counters: Dict[str, float] = {}
        for name, counter in self._counters.items():
            metric = list(counter.collect())[0]
            counters[name] = sum(
                sample.value
                for sample in metric.samples
                if sample.name.endswith("_total")
            )
        return counters
