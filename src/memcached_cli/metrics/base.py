from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, NamedTuple, Optional, Union


class MetricDefinition(NamedTuple):
    name: str
    documentation: str
    labelnames: Iterable[str] = ()


COMMANDS = "commands"
RECONNECTS = "reconnects"
ERRORS = "errors"

DATA_SOURCE_METRICS: List[MetricDefinition] = [
    MetricDefinition(
        name=COMMANDS,
        documentation="Commands sent to the memcache server",
        labelnames=("command",),
    ),
    MetricDefinition(
        name=RECONNECTS,
        documentation="Reconnections after losing the connection",
    ),
    MetricDefinition(
        name=ERRORS,
        documentation="Failed commands by kind of error",
        labelnames=("kind",),
    ),
]


class BaseMetricsCollector(ABC):
    """
    Where a DataSource reports its counters, when given one.

    The DataSource declares DATA_SOURCE_METRICS through init_metrics()
    when built, then bumps them by name:
        collector.metric_inc(COMMANDS, labels={"command": "get"})
        collector.metric_inc(RECONNECTS)
    Only counters are used, so there are no gauges.
    """

    def __init__(self, namespace: str = "") -> None:
        self._namespace = namespace

    @abstractmethod
    def init_metrics(
        self,
        metrics: List[MetricDefinition],
        namespace: str = "",
    ) -> None:
        ...  # pragma: no cover

    @abstractmethod
    def metric_inc(
        self,
        key: str,
        value: Union[float, int] = 1,
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        ...  # pragma: no cover

    @abstractmethod
    def get_counters(self) -> Dict[str, float]:
        ...  # pragma: no cover
