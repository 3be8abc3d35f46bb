"""
remote-info-exporter entry point.

Usage:
    remote-info-exporter --url http://localhost:9200            Serve /metrics on :9114
    remote-info-exporter --url http://localhost:9200 show       One-shot table of remotes
    remote-info-exporter --url http://localhost:9200 dump       One-shot Prometheus text
"""

from __future__ import annotations

import logging
import re
import ssl
import time
from typing import Optional

import click
import httpx
from prometheus_client import CollectorRegistry, generate_latest, start_http_server

from remote_info_exporter import __version__
from remote_info_exporter.collector.remote_info import RemoteInfoCollector
from remote_info_exporter.definitions import DEFAULT_NAMESPACE
from remote_info_exporter.errors import RemoteInfoError


log = logging.getLogger("remote_info_exporter")

_METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")


def build_client(timeout: float, insecure: bool = False, ca_cert: Optional[str] = None) -> httpx.Client:
    """HTTP client for the cluster. All transport settings live here."""
    if insecure:
        verify = False
    elif ca_cert:
        verify = ssl.create_default_context(cafile=ca_cert)
    else:
        verify = True
    return httpx.Client(timeout=timeout, verify=verify)


def _validate_url(ctx, param, value):
    if value is None:
        return value
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise click.BadParameter(str(exc))
    if url.scheme not in ("http", "https") or not url.host:
        raise click.BadParameter("must be an http(s) URL with a host, e.g. http://localhost:9200")
    return value


def _validate_namespace(ctx, param, value):
    if not _METRIC_NAME_RE.fullmatch(value):
        raise click.BadParameter(f"{value!r} is not a valid metric name prefix")
    return value


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="remote-info-exporter")
@click.option("--url", envvar="REMOTE_INFO_URL", default=None, callback=_validate_url,
              help="Elasticsearch base URL (e.g. http://localhost:9200)")
@click.option("--listen-address", envvar="REMOTE_INFO_LISTEN_ADDRESS", default="0.0.0.0",
              help="Address to expose metrics on")
@click.option("--port", envvar="REMOTE_INFO_PORT", default=9114, type=int,
              help="Port to expose metrics on")
@click.option("--timeout", envvar="REMOTE_INFO_TIMEOUT", default=5.0, type=float,
              help="Timeout in seconds for requests to Elasticsearch")
@click.option("--namespace", envvar="REMOTE_INFO_NAMESPACE", default=DEFAULT_NAMESPACE,
              callback=_validate_namespace, help="Prefix for all exported metric names")
@click.option("--insecure", envvar="REMOTE_INFO_INSECURE", is_flag=True, default=False,
              help="Skip TLS certificate verification")
@click.option("--ca-cert", envvar="REMOTE_INFO_CA_CERT", default=None,
              type=click.Path(exists=True, dir_okay=False),
              help="CA bundle used to verify the cluster's certificate")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, url: Optional[str], listen_address: str, port: int, timeout: float,
        namespace: str, insecure: bool, ca_cert: Optional[str], verbose: bool):
    """Export Elasticsearch remote cluster connectivity as Prometheus metrics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["listen_address"] = listen_address
    ctx.obj["port"] = port
    ctx.obj["timeout"] = timeout
    ctx.obj["namespace"] = namespace
    ctx.obj["insecure"] = insecure
    ctx.obj["ca_cert"] = ca_cert

    # No subcommand means serve
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


def _require_url(ctx) -> str:
    url = ctx.obj["url"]
    if not url:
        raise click.UsageError("Please specify the cluster to scrape: --url <endpoint>")
    return url


def _client_from_ctx(ctx) -> httpx.Client:
    return build_client(
        timeout=ctx.obj["timeout"],
        insecure=ctx.obj["insecure"],
        ca_cert=ctx.obj["ca_cert"],
    )


@cli.command()
@click.pass_context
def serve(ctx):
    """Expose the collector over HTTP until interrupted."""
    url = _require_url(ctx)
    client = _client_from_ctx(ctx)
    collector = RemoteInfoCollector(client, url, namespace=ctx.obj["namespace"])

    registry = CollectorRegistry()
    registry.register(collector)

    listen_address = ctx.obj["listen_address"]
    port = ctx.obj["port"]
    start_http_server(port, addr=listen_address, registry=registry)
    log.info("Serving %s on http://%s:%d/metrics", collector.name(), listen_address, port)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        client.close()


@cli.command()
@click.pass_context
def show(ctx):
    """Scrape once and print the remote clusters as a table."""
    from rich.console import Console
    from rich.table import Table

    url = _require_url(ctx)
    console = Console()

    with _client_from_ctx(ctx) as client:
        collector = RemoteInfoCollector(client, url, namespace=ctx.obj["namespace"])
        try:
            remote_info = collector.fetch()
        except RemoteInfoError as exc:
            console.print(f"\n[bold red]{exc.kind.upper()} ERROR[/bold red]  {exc}\n")
            raise SystemExit(1)

    if not remote_info:
        console.print("\n[dim]No remote clusters configured.[/dim]\n")
        return

    table = Table(title=collector.name(), show_header=True, header_style="bold")
    table.add_column("Remote cluster")
    table.add_column("Nodes connected", justify="right")
    table.add_column("Proxy sockets connected", justify="right")
    table.add_column("Max connections", justify="right")

    for remote_cluster in sorted(remote_info):
        record = remote_info[remote_cluster]
        nodes_color = "green" if record.num_nodes_connected or record.num_proxy_sockets_connected else "red"
        table.add_row(
            f"[cyan]{remote_cluster}[/cyan]",
            f"[{nodes_color}]{record.num_nodes_connected}[/{nodes_color}]",
            str(record.num_proxy_sockets_connected),
            str(record.max_connections_per_cluster),
        )

    console.print()
    console.print(table)
    console.print()


@cli.command()
@click.pass_context
def dump(ctx):
    """Scrape once and print the metrics in Prometheus text format."""
    url = _require_url(ctx)

    with _client_from_ctx(ctx) as client:
        collector = RemoteInfoCollector(client, url, namespace=ctx.obj["namespace"])
        registry = CollectorRegistry()
        registry.register(collector)
        output = generate_latest(registry).decode("utf-8")

    click.echo(output, nl=False)
    if not collector.up:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
