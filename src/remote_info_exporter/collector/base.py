"""
Base collector interface.

A collector is anything a prometheus_client CollectorRegistry can pull
from: it describes the metrics it will produce, and produces a fresh set
of metric families every time the registry is scraped.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from prometheus_client.core import Metric


class ExporterCollector(ABC):
    """Interface for all metrics sources."""

    @abstractmethod
    def describe(self) -> Iterable[Metric]:
        """Empty metric families for everything collect() may yield."""
        ...

    @abstractmethod
    def collect(self) -> Iterable[Metric]:
        """Run one collection cycle and yield its metric families."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...
