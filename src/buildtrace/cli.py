"""
buildtrace CLI - Inspect and replay build traces.

Commands:
    buildtrace timeline   Print the reconstructed timeline of a finished build
    buildtrace emit       Trace a finished build and send it to the collector
    buildtrace config     Show the effective configuration

EVENT_FILE is a build-finished payload in JSON or YAML, as sent by the CI
server (camelCase field names).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from buildtrace import __version__
from buildtrace.config import get_config
from buildtrace.errors import MissingBuildTypeError
from buildtrace.listener import BuildTracingListener
from buildtrace.models import BuildFinishedEvent
from buildtrace.registry import TracerRegistry
from buildtrace.snapshot import BuildTimingSnapshot
from buildtrace.timeline import build_timeline


def _load_event(path: str) -> BuildFinishedEvent:
    try:
        data = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as e:
        raise click.BadParameter(f"Cannot parse {path}: {e}", param_hint="EVENT_FILE")
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} does not contain a mapping", param_hint="EVENT_FILE")
    try:
        return BuildFinishedEvent.model_validate(data)
    except ValidationError as e:
        raise click.BadParameter(f"Invalid build event in {path}:\n{e}", param_hint="EVENT_FILE")


@click.group()
@click.version_option(version=__version__)
def main():
    """buildtrace - Reconstruct CI builds as distributed traces."""
    logging.getLogger("buildtrace").setLevel(get_config().log_level.upper())


@main.command()
@click.argument("event_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def timeline(event_file: str, output_format: str):
    """Print the reconstructed timeline of a finished build."""
    event = _load_event(event_file)
    try:
        snapshot = BuildTimingSnapshot.from_event(event)
    except MissingBuildTypeError as e:
        raise click.UsageError(str(e))

    intervals = build_timeline(snapshot)

    if output_format == "json":
        click.echo(json.dumps(
            [
                {
                    "name": i.name,
                    "kind": i.kind,
                    "start": str(i.start),
                    "finish": str(i.finish),
                    "duration_ms": str(i.duration),
                }
                for i in intervals
            ],
            indent=2,
        ))
        return

    click.echo(f"Build {event.build_id} ({event.build_type_id})")
    for i in intervals:
        offset = i.start - snapshot.start_time
        click.echo(f"  +{offset:>10} ms  {i.duration:>10} ms  {i.name}")


@main.command()
@click.argument("event_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--endpoint", help="Collector endpoint (host:port), overrides the build feature")
def emit(event_file: str, endpoint: Optional[str]):
    """Trace a finished build and send it to the collector."""
    event = _load_event(event_file)
    registry = TracerRegistry()
    listener = BuildTracingListener(registry=registry, endpoint=endpoint)
    try:
        traced = listener.build_finished(event)
    finally:
        registry.shutdown()

    if traced:
        click.echo(f"Traced build {event.build_id} to {', '.join(registry.endpoints())}")
    else:
        click.echo(f"Build {event.build_id} was not traced", err=True)
        raise SystemExit(1)


@main.command("config")
def show_config():
    """Show the effective configuration."""
    click.echo(json.dumps(get_config().model_dump(), indent=2))


if __name__ == "__main__":
    main()
