"""Command-line interface for TrafficLens."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from .. import __version__
from ..analysis.summary import SummaryAssembler
from ..core.config import Config
from ..core.errors import TrafficLensError
from ..core.models import (
    DestinationStat,
    DNSDomainCount,
    PortCount,
    ProtocolCount,
    TalkerStat,
)
from ..core.scope import parse_capture_scope
from ..output.formats import SECTIONS, to_dataframe, to_json
from ..store.database import DatabaseStore
from ..utils.port_classifier import classify_port

if TYPE_CHECKING:
    from ..monitoring.prometheus import PrometheusMetrics


# JSON keys accepted by ``load`` for each dimension
_LOAD_KEYS = {
    "protocols": "protocols",
    "ports": "ports",
    "talkers": "talkers",
    "dnsDomains": "dns_domains",
    "dns_domains": "dns_domains",
    "destinations": "destinations",
}

_ROW_MODELS = {
    "protocols": ProtocolCount,
    "ports": PortCount,
    "talkers": TalkerStat,
    "dns_domains": DNSDomainCount,
    "destinations": DestinationStat,
}


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _load_config(config_file: str | None) -> Config:
    if config_file is None:
        return Config()
    try:
        return Config.from_file(config_file)
    except (ValueError, ImportError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")


def _start_prometheus_metrics(port: int | None, addr: str) -> "PrometheusMetrics | None":
    if port is None:
        return None
    try:
        from ..monitoring.prometheus import PrometheusMetrics, start_prometheus_server
    except ImportError as exc:
        raise click.ClickException(str(exc))

    metrics = PrometheusMetrics()
    try:
        start_prometheus_server(port, addr=addr, registry=metrics.registry)
    except (ImportError, OSError) as exc:
        raise click.ClickException(f"Cannot start metrics server: {exc}")
    click.echo(f"Prometheus metrics available at http://{addr}:{port}", err=True)
    return metrics


def _validate_rows(dimension: str, rows: Any) -> list[Any]:
    """Check every row of one dimension before anything is written."""
    if not isinstance(rows, list):
        raise click.ClickException(f"{dimension} must be a list of rows.")
    model = _ROW_MODELS[dimension]
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise click.ClickException(f"{dimension} row {index} must be a JSON object.")
        try:
            model.from_row(row)
        except KeyError as exc:
            raise click.ClickException(f"{dimension} row {index} is missing column {exc}")
        except (TypeError, ValueError) as exc:
            raise click.ClickException(f"Invalid {dimension} row {index}: {exc}")
    return rows


@click.group()
@click.version_option(version=__version__, prog_name="trafficlens")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """TrafficLens: ranked, categorized traffic summaries.

    Summarize aggregated protocol, port, host, DNS and destination
    counts recorded for network captures.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.argument("database", required=False)
@click.option(
    "--capture-id",
    default=None,
    help="Capture to summarize. Omit to summarize all captures.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    help="Configuration file (JSON or YAML).",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(),
    help="Output file path. Defaults to stdout.",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["json", "csv"]),
    default="json",
    help="Output format. CSV requires --section.",
)
@click.option(
    "--section",
    type=click.Choice(SECTIONS),
    help="Export a single section instead of the whole summary.",
)
@click.option("--parallel", is_flag=True, help="Read dimensions concurrently.")
@click.option(
    "--metrics-port",
    type=click.IntRange(1, 65535),
    default=None,
    help="Expose Prometheus metrics on this port.",
)
@click.option(
    "--metrics-addr",
    type=str,
    default="0.0.0.0",
    help="Prometheus bind address.",
)
def summary(
    database: str | None,
    capture_id: str | None,
    config_file: str | None,
    output: str | None,
    output_format: str,
    section: str | None,
    parallel: bool,
    metrics_port: int | None,
    metrics_addr: str,
) -> None:
    """Summarize traffic stored in DATABASE.

    DATABASE is a SQLite path or a database URL. It may also be set
    with the ``database`` configuration key.
    """
    config = _load_config(config_file)
    if parallel:
        config.parallel = True

    dsn = database or config.database
    if not dsn:
        raise click.UsageError("No database given. Pass DATABASE or set it in the config file.")
    if output_format == "csv" and section is None:
        raise click.UsageError("CSV output requires --section.")

    metrics = _start_prometheus_metrics(metrics_port, metrics_addr)

    try:
        scope = parse_capture_scope(capture_id)
        with DatabaseStore(dsn, read_only=True) as store:
            result = SummaryAssembler(store, config=config, metrics=metrics).assemble(scope)
    except TrafficLensError as exc:
        raise click.ClickException(str(exc))
    except ValueError as exc:
        raise click.ClickException(str(exc))

    if output_format == "csv":
        text = to_dataframe(result, section).to_csv(index=False)
    elif section is not None:
        text = json.dumps(result.to_dict()[section], indent=2)
    else:
        text = to_json(result)

    if output:
        Path(output).write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        click.echo(f"Wrote summary for {scope} to {output}", err=True)
    else:
        click.echo(text.rstrip("\n"))


@cli.command()
@click.argument("ports", nargs=-1, required=True, type=click.IntRange(0, 65535))
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table.")
def classify(ports: tuple[int, ...], as_json: bool) -> None:
    """Show the service category for each of PORTS."""
    results = []
    for port in ports:
        category, service = classify_port(port)
        results.append({"port": port, "category": category.value, "service": service})

    if as_json:
        click.echo(json.dumps(results, indent=2))
        return

    for entry in results:
        click.echo(f"{entry['port']:>5}  {entry['category']:<14}  {entry['service']}")


@cli.command()
@click.argument("database")
@click.argument("input_path", type=click.Path(exists=True))
@click.option("--capture-id", required=True, help="Capture the rows belong to.")
def load(database: str, input_path: str, capture_id: str) -> None:
    """Load aggregated rows from INPUT_PATH into DATABASE.

    INPUT_PATH is a JSON object with any of the keys protocols, ports,
    talkers, dnsDomains and destinations, each a list of rows.
    """
    try:
        with open(input_path, encoding="utf-8") as f:
            document: Any = json.load(f)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON in {input_path}: {exc}")

    if not isinstance(document, dict):
        raise click.ClickException("Input must be a JSON object keyed by dimension.")

    unknown = sorted(set(document) - set(_LOAD_KEYS))
    if unknown:
        raise click.ClickException(f"Unknown dimensions: {', '.join(unknown)}")

    try:
        scope = parse_capture_scope(capture_id)
        if scope.capture_id is None:
            raise click.UsageError("--capture-id must not be empty.")
        batches = [(_LOAD_KEYS[key], rows) for key, rows in document.items()]
        for dimension, rows in batches:
            _validate_rows(dimension, rows)
        total = 0
        with DatabaseStore(database) as store:
            store.create_schema()
            for dimension, rows in batches:
                total += store.insert_rows(dimension, rows, scope.capture_id)
    except TrafficLensError as exc:
        raise click.ClickException(str(exc))
    except ValueError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Loaded {total} rows into {scope}", err=True)


def main() -> None:
    """Entry point for the trafficlens command."""
    cli()


if __name__ == "__main__":
    main()
