"""
Shape of the `/_remote/info` payload.

Elasticsearch returns one object per connected remote cluster, keyed by
the cluster alias. We only care about three counters in each; everything
else the endpoint sends (seeds, mode, skip_unavailable, ...) is ignored.
Missing counters default to zero.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict

from remote_info_exporter.errors import DecodeError


@dataclass(frozen=True)
class RemoteClusterRecord:
    """Connection counters for one remote cluster."""

    num_nodes_connected: int = 0
    num_proxy_sockets_connected: int = 0
    max_connections_per_cluster: int = 0


# Cluster alias -> counters. Iteration order is whatever the server sent.
RemoteInfoResponse = Dict[str, RemoteClusterRecord]

_RECORD_FIELDS = tuple(f.name for f in fields(RemoteClusterRecord))


def _decode_counter(cluster: str, field_name: str, raw: Any) -> int:
    if raw is None:
        return 0
    # bool is an int subclass, but true/false is never a valid counter
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise DecodeError(
            f"cluster {cluster!r}: field {field_name!r} must be an integer, "
            f"got {type(raw).__name__}"
        )
    return raw


def decode_record(cluster: str, raw: Any) -> RemoteClusterRecord:
    if raw is None:
        return RemoteClusterRecord()
    if not isinstance(raw, dict):
        raise DecodeError(
            f"cluster {cluster!r}: expected an object, got {type(raw).__name__}"
        )

    values = {
        name: _decode_counter(cluster, name, raw.get(name))
        for name in _RECORD_FIELDS
    }
    return RemoteClusterRecord(**values)


def decode_remote_info(payload: Any) -> RemoteInfoResponse:
    """Validate a parsed JSON document and turn it into a RemoteInfoResponse.

    Raises DecodeError if the document isn't an object of objects.
    """
    # A bare null body means no remotes, same as {}
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise DecodeError(
            f"expected a JSON object at the top level, got {type(payload).__name__}"
        )

    return {
        str(cluster): decode_record(cluster, raw)
        for cluster, raw in payload.items()
    }
