"""
Metric definitions for the remote info collector.

Each definition binds one field of a RemoteClusterRecord to one exported
metric: name, help text, type, how to pull the value out of a record and
how to turn the cluster alias into label values. Adding a metric means
adding an entry here, the collector doesn't change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from remote_info_exporter.schema import RemoteClusterRecord

DEFAULT_NAMESPACE = "elasticsearch"

SUBSYSTEM = "remote_info"
STATS_SUBSYSTEM = "remote_info_stats"

REMOTE_INFO_LABELS = ["remote_cluster"]

GAUGE = "gauge"
COUNTER = "counter"

_FAMILY_TYPES = {
    GAUGE: GaugeMetricFamily,
    COUNTER: CounterMetricFamily,
}


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts with underscores, e.g. es_remote_info_up."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


def remote_cluster_labels(remote_cluster: str) -> List[str]:
    return [remote_cluster]


def new_family(
    value_type: str,
    name: str,
    help_text: str,
    labels: Optional[Sequence[str]] = None,
    value: Optional[float] = None,
) -> Metric:
    """Build an empty (or single-valued) metric family of the given type."""
    family_cls = _FAMILY_TYPES[value_type]
    if value is not None:
        return family_cls(name, help_text, value=value)
    return family_cls(name, help_text, labels=list(labels or []))


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    help_text: str
    value_type: str
    value: Callable[[RemoteClusterRecord], float]
    labels: Callable[[str], List[str]] = remote_cluster_labels
    label_names: Tuple[str, ...] = tuple(REMOTE_INFO_LABELS)

    def family(self) -> Metric:
        """An empty family for this metric. Used both to describe and to collect."""
        return new_family(self.value_type, self.name, self.help_text, self.label_names)


def remote_info_metrics(namespace: str = DEFAULT_NAMESPACE) -> Tuple[MetricDefinition, ...]:
    """The fixed table of per-cluster metrics."""
    return (
        MetricDefinition(
            name=build_fq_name(namespace, SUBSYSTEM, "num_nodes_connected"),
            help_text="Number of nodes connected",
            value_type=GAUGE,
            value=lambda record: float(record.num_nodes_connected),
        ),
        MetricDefinition(
            name=build_fq_name(namespace, SUBSYSTEM, "num_proxy_sockets_connected"),
            help_text="Number of proxy sockets connected",
            value_type=GAUGE,
            value=lambda record: float(record.num_proxy_sockets_connected),
        ),
        MetricDefinition(
            name=build_fq_name(namespace, SUBSYSTEM, "max_connections_per_cluster"),
            help_text="Max connections per cluster",
            value_type=GAUGE,
            value=lambda record: float(record.max_connections_per_cluster),
        ),
    )
