"""
Collector for Elasticsearch's /_remote/info endpoint.

Each scrape of the registry is one GET against the cluster. The response
maps remote cluster aliases to connection counters, which we re-export
as gauges labeled by remote_cluster. Alongside those we keep three
bookkeeping metrics (up, total_scrapes, json_parse_failures) that are
emitted on every cycle, failed or not.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterator, List, Optional, Sequence

import httpx
from prometheus_client.core import Metric

from remote_info_exporter.collector.base import ExporterCollector
from remote_info_exporter.definitions import (
    COUNTER,
    DEFAULT_NAMESPACE,
    GAUGE,
    STATS_SUBSYSTEM,
    MetricDefinition,
    build_fq_name,
    new_family,
    remote_info_metrics,
)
from remote_info_exporter.errors import (
    DecodeError,
    FetchError,
    RemoteInfoError,
    StatusError,
)
from remote_info_exporter.schema import RemoteInfoResponse, decode_remote_info

log = logging.getLogger(__name__)

REMOTE_INFO_PATH = "/_remote/info"


class RemoteInfoCollector(ExporterCollector):

    def __init__(
        self,
        client: httpx.Client,
        base_url: str,
        namespace: str = DEFAULT_NAMESPACE,
        definitions: Optional[Sequence[MetricDefinition]] = None,
    ):
        self._client = client
        self._base_url = httpx.URL(base_url)
        self._definitions = tuple(definitions) if definitions is not None else remote_info_metrics(namespace)

        self._up_name = build_fq_name(namespace, STATS_SUBSYSTEM, "up")
        self._total_scrapes_name = build_fq_name(namespace, STATS_SUBSYSTEM, "total_scrapes")
        self._json_parse_failures_name = build_fq_name(namespace, STATS_SUBSYSTEM, "json_parse_failures")

        # Overlapping scrapes would otherwise race on these
        self._lock = threading.Lock()
        self._up = 0.0
        self._total_scrapes = 0
        self._json_parse_failures = 0

    @property
    def definitions(self) -> tuple:
        return self._definitions

    @property
    def up(self) -> float:
        with self._lock:
            return self._up

    @property
    def total_scrapes(self) -> int:
        with self._lock:
            return self._total_scrapes

    @property
    def json_parse_failures(self) -> int:
        with self._lock:
            return self._json_parse_failures

    def remote_info_url(self) -> httpx.URL:
        """Base URL with /_remote/info appended to whatever path it already has."""
        path = self._base_url.path.rstrip("/") + REMOTE_INFO_PATH
        return self._base_url.copy_with(path=path)

    def fetch(self) -> RemoteInfoResponse:
        """GET and decode /_remote/info once.

        Raises FetchError, StatusError or DecodeError. Only a decode
        failure touches the bookkeeping (json_parse_failures).
        """
        url = self.remote_info_url()

        try:
            response = self._client.send(self._client.build_request("GET", url), stream=True)
        except httpx.RequestError as exc:
            raise FetchError(exc, url.scheme, url.host, url.port, url.path) from exc

        try:
            if response.status_code != httpx.codes.OK:
                raise StatusError(response.status_code)

            try:
                response.read()
            except httpx.RequestError as exc:
                raise FetchError(exc, url.scheme, url.host, url.port, url.path) from exc

            try:
                return decode_remote_info(response.json())
            # json raises RecursionError on pathologically nested bodies
            except (ValueError, RecursionError, DecodeError) as exc:
                with self._lock:
                    self._json_parse_failures += 1
                if isinstance(exc, DecodeError):
                    raise
                raise DecodeError(f"invalid JSON body: {exc}") from exc
        finally:
            self._close_response(response)

    def _close_response(self, response: httpx.Response):
        try:
            response.close()
        except (httpx.HTTPError, OSError) as exc:
            log.warning("Failed to close remote info response: %s", exc)

    def describe(self) -> Iterator[Metric]:
        for definition in self._definitions:
            yield definition.family()
        yield new_family(GAUGE, self._up_name, _UP_HELP)
        yield new_family(COUNTER, self._total_scrapes_name, _TOTAL_SCRAPES_HELP)
        yield new_family(COUNTER, self._json_parse_failures_name, _JSON_PARSE_FAILURES_HELP)

    def collect(self) -> Iterator[Metric]:
        """One collection cycle: scrape, then yield per-cluster and bookkeeping metrics."""
        with self._lock:
            self._total_scrapes += 1

        cluster_families: List[Metric] = []
        try:
            remote_info = self.fetch()
        except RemoteInfoError as exc:
            self._set_up(0.0)
            log.warning("Failed to fetch and decode remote info (%s error): %s", exc.kind, exc)
        else:
            self._set_up(1.0)
            cluster_families = self._cluster_families(remote_info)
            log.debug("Remote info scrape ok, %d remote clusters", len(remote_info))

        # Bookkeeping goes out last, whichever branch we took
        yield from cluster_families
        yield from self._bookkeeping_families()

    def _cluster_families(self, remote_info: RemoteInfoResponse) -> List[Metric]:
        families: List[Metric] = []
        if not remote_info:
            return families

        for definition in self._definitions:
            family = definition.family()
            for remote_cluster, record in remote_info.items():
                family.add_metric(definition.labels(remote_cluster), definition.value(record))
            families.append(family)
        return families

    def _bookkeeping_families(self) -> List[Metric]:
        with self._lock:
            up = self._up
            total_scrapes = self._total_scrapes
            json_parse_failures = self._json_parse_failures

        return [
            new_family(GAUGE, self._up_name, _UP_HELP, value=up),
            new_family(COUNTER, self._total_scrapes_name, _TOTAL_SCRAPES_HELP, value=total_scrapes),
            new_family(
                COUNTER,
                self._json_parse_failures_name,
                _JSON_PARSE_FAILURES_HELP,
                value=json_parse_failures,
            ),
        ]

    def _set_up(self, value: float):
        with self._lock:
            self._up = value

    def name(self) -> str:
        return f"Elasticsearch remote info ({self.remote_info_url()})"


_UP_HELP = "Was the last scrape of the ElasticSearch remote info endpoint successful."
_TOTAL_SCRAPES_HELP = "Current total ElasticSearch remote info scrapes."
_JSON_PARSE_FAILURES_HELP = "Number of errors while parsing JSON."
