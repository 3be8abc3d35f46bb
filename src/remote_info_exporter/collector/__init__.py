from remote_info_exporter.collector.base import ExporterCollector
from remote_info_exporter.collector.remote_info import RemoteInfoCollector

__all__ = [
    "ExporterCollector",
    "RemoteInfoCollector",
]
