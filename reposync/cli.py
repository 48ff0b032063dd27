"""Click-based CLI for RepoSync - repository mirroring."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from rich.markup import escape

from reposync import __version__
from reposync.config import (
    Resolution,
    ensure_config_exists,
    get_config_path,
    load_config,
    parse_config,
    read_config_data,
    validate_config_file,
)
from reposync.config.defaults import generate_default_config
from reposync.exceptions import ConfigurationError, RepositoryAccessError
from reposync.logger import setup_logging
from reposync.output import Console, create_console
from reposync.repository import create_repository
from reposync.sync import ResourceRef, SynchronizationPolicy, SynchronizationReport, synchronize

RESOLUTION_CHOICE = click.Choice([r.value for r in Resolution], case_sensitive=False)
TYPE_CHOICE = click.Choice(["file", "memory", "webdav", "svn"], case_sensitive=False)


@click.group()
@click.version_option(version=__version__, prog_name="reposync")
def cli() -> None:
    """RepoSync - mirror resource repositories.

    Reconciles a destination repository with a source repository.

    \b
    Resolutions (per category: resource, content, metadata):
      backup       source wins, destination-only data is removed
      produce      source wins, destination-only data is kept
      restore      destination wins, source-only data is removed
      consume      destination wins, source-only data is kept
      synchronize  the newer side wins
      ignore       discrepancies are left alone
    """
    pass


@cli.command()
@click.option("--config", "-c", "config_file", type=click.Path(path_type=Path), help="Configuration file")
@click.option("--source-repository", "-s", help="Source repository URI or path")
@click.option("--source-repository-type", type=TYPE_CHOICE, help="Source repository type")
@click.option("--source-resource", help="Source resource to synchronize (default: repository root)")
@click.option("--destination-repository", "-d", help="Destination repository URI or path")
@click.option("--destination-repository-type", type=TYPE_CHOICE, help="Destination repository type")
@click.option("--destination-resource", help="Destination resource to synchronize (default: repository root)")
@click.option("--ignore-source-resource", multiple=True, help="Source resource to skip (repeatable)")
@click.option("--ignore-destination-resource", multiple=True, help="Destination resource to skip (repeatable)")
@click.option("--ignore-property", multiple=True, help="Property URI to skip (repeatable)")
@click.option("--resolution", "-r", type=RESOLUTION_CHOICE, help="Resolution for every category")
@click.option("--resource-resolution", type=RESOLUTION_CHOICE, help="Resolution for orphan resources")
@click.option("--content-resolution", type=RESOLUTION_CHOICE, help="Resolution for content discrepancies")
@click.option("--metadata-resolution", type=RESOLUTION_CHOICE, help="Resolution for property discrepancies")
@click.option(
    "--force-content-modified-property",
    is_flag=True,
    help="Stamp the modified property on every content transfer",
)
@click.option("--timestamp-tolerance", type=float, help="Modified timestamp tolerance in seconds")
@click.option("--test", "-n", is_flag=True, help="Dry run: report actions without applying them")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "yaml"]),
    default="table",
    help="Report output format",
)
def mirror(
    config_file: Optional[Path],
    source_repository: Optional[str],
    source_repository_type: Optional[str],
    source_resource: Optional[str],
    destination_repository: Optional[str],
    destination_repository_type: Optional[str],
    destination_resource: Optional[str],
    ignore_source_resource: tuple[str, ...],
    ignore_destination_resource: tuple[str, ...],
    ignore_property: tuple[str, ...],
    resolution: Optional[str],
    resource_resolution: Optional[str],
    content_resolution: Optional[str],
    metadata_resolution: Optional[str],
    force_content_modified_property: bool,
    timestamp_tolerance: Optional[float],
    test: bool,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    output_format: str,
) -> None:
    """Mirror a source repository onto a destination repository.

    Command-line values override the configuration file. Without a
    configuration file, source and destination repositories are required.
    """
    console = create_console(verbose=verbose, colored=not no_color)

    # Use the default config file only if the command line does not name both sides
    if config_file is None and not (source_repository and destination_repository):
        default_path = get_config_path()
        config_file = default_path if default_path.exists() else None
        if config_file is None:
            console.print_error("Source and destination repositories are required (or use --config)")
            sys.exit(1)

    try:
        data: dict[str, Any] = read_config_data(config_file) if config_file is not None else {}
        _apply_overrides(
            data,
            source={"repository": source_repository, "type": source_repository_type, "resource": source_resource},
            destination={
                "repository": destination_repository,
                "type": destination_repository_type,
                "resource": destination_resource,
            },
            values={
                "resolution": resolution,
                "resource_resolution": resource_resolution,
                "content_resolution": content_resolution,
                "metadata_resolution": metadata_resolution,
                "timestamp_tolerance": timestamp_tolerance,
            },
            flags={"force_content_modified_property": force_content_modified_property, "test": test},
            output_flags={"verbose": verbose, "quiet": quiet},
            ignores={
                "ignore_source_resources": ignore_source_resource,
                "ignore_destination_resources": ignore_destination_resource,
                "ignore_properties": ignore_property,
            },
        )
        config = parse_config(data)
    except (FileNotFoundError, ConfigurationError) as e:
        console.print_error(str(e))
        sys.exit(1)

    console = create_console(verbose=config.output.verbose, colored=config.output.colored and not no_color)
    setup_logging(verbose=config.output.verbose, quiet=config.output.quiet, log_file=config.output.log_file)

    try:
        policy = SynchronizationPolicy.from_config(config)
        source = ResourceRef(
            create_repository(config.source.repository, config.source.type), config.source.resource_uri()
        )
        destination = ResourceRef(
            create_repository(config.destination.repository, config.destination.type),
            config.destination.resource_uri(),
        )
        report = synchronize(source, destination, policy)
    except ConfigurationError as e:
        console.print_error(str(e))
        sys.exit(1)
    except RepositoryAccessError as e:
        if e.report is not None:
            _print_report(console, e.report, output_format)
        console.print_error(str(e))
        sys.exit(1)

    _print_report(console, report, output_format)
    if report.has_failures:
        sys.exit(1)


def _apply_overrides(
    data: dict[str, Any],
    *,
    source: dict[str, Optional[str]],
    destination: dict[str, Optional[str]],
    values: dict[str, Any],
    flags: dict[str, bool],
    output_flags: dict[str, bool],
    ignores: dict[str, tuple[str, ...]],
) -> None:
    """Apply command-line values on top of raw configuration data."""
    for section, overrides in (("source", source), ("destination", destination)):
        given = {key: value for key, value in overrides.items() if value is not None}
        if given:
            data[section] = {**(data.get(section) or {}), **given}

    data.update({key: value for key, value in values.items() if value is not None})
    data.update({key: True for key, value in flags.items() if value})

    given_output = {key: True for key, value in output_flags.items() if value}
    if given_output:
        data["output"] = {**(data.get("output") or {}), **given_output}

    # Repeated entries extend the configured lists
    for key, items in ignores.items():
        if items:
            data[key] = list(data.get(key) or []) + list(items)


def _print_report(console: Console, report: SynchronizationReport, output_format: str) -> None:
    """Print a report as a table with summary, or as YAML for scripting."""
    if output_format == "yaml":
        document = {"test": report.test, "cancelled": report.cancelled, "entries": report.to_dicts()}
        click.echo(yaml.safe_dump(document, default_flow_style=False, sort_keys=False, allow_unicode=True), nl=False)
        return
    console.print_report(report)
    console.print_summary(report)


# =============================================================================
# Config Commands
# =============================================================================


@cli.group()
def config() -> None:
    """Manage the RepoSync configuration file."""
    pass


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing configuration")
def config_init(force: bool) -> None:
    """Create a default configuration file."""
    console = create_console()
    config_path = get_config_path()

    if config_path.exists() and force:
        config_path.write_text(generate_default_config(), encoding="utf-8")
        console.print_success(f"Configuration reset: {config_path}")
        return

    config_path, created = ensure_config_exists(config_path)
    if created:
        console.print_success(f"Configuration created: {config_path}")
    else:
        console.print_warning(f"Configuration already exists: {config_path} (use --force to overwrite)")


@config.command("show")
@click.option("--config", "-c", "config_file", type=click.Path(path_type=Path), help="Configuration file")
def config_show(config_file: Optional[Path]) -> None:
    """Show the effective configuration."""
    console = create_console()
    config_path = config_file or get_config_path()
    try:
        mirror_config = load_config(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        console.print_error(str(e))
        sys.exit(1)

    console.print_config_summary(str(config_path), mirror_config)
    click.echo(
        yaml.safe_dump(mirror_config.model_dump(mode="json"), default_flow_style=False, sort_keys=False), nl=False
    )


@config.command("validate")
@click.argument("file", type=click.Path(path_type=Path), required=False)
def config_validate(file: Optional[Path]) -> None:
    """Validate a configuration file (default: the active one)."""
    console = create_console()
    config_path = file or get_config_path()
    valid, errors = validate_config_file(config_path)
    if valid:
        console.print_success(f"Configuration is valid: {config_path}")
        return

    console.print_error(f"Configuration is invalid: {config_path}")
    for error in errors:
        console.print(f"  [red]•[/red] {escape(error)}")
    sys.exit(1)


@config.command("path")
def config_path_cmd() -> None:
    """Print the configuration file path."""
    click.echo(str(get_config_path()))


if __name__ == "__main__":
    cli()
