"""Prometheus exporter for Elasticsearch remote cluster connectivity."""

__version__ = "0.1.0"
