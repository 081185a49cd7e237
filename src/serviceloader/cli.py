"""Command-line interface for serviceloader."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click  # type: ignore
import yaml  # type: ignore
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import GeneratorConfig
from .discovery import discover
from .errors import ServiceLoaderError
from .mapping import ServiceImplementationSet
from .scanner import list_compiled_units
from .version import __version__
from .writer import ServiceFileWriter


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    logging.getLogger("serviceloader").setLevel(level)


def _split_classpath(entries: Tuple[str, ...]) -> list:
    """Accept repeated options as well as os.pathsep-separated lists."""
    split = []
    for entry in entries:
        split.extend(part for part in entry.split(os.pathsep) if part)
    return split


def _load_config(config_path: Optional[str], overrides: Dict[str, Any]) -> GeneratorConfig:
    if config_path:
        return GeneratorConfig.from_file(config_path, **overrides)
    return GeneratorConfig(**overrides)


def _render_summary(console: Console, result: ServiceImplementationSet) -> None:
    table = Table(title="Service implementations")
    table.add_column("Service type", style="cyan")
    table.add_column("Implementations")
    for service, names in result.items():
        table.add_row(service, "\n".join(names) if names else "[dim](none)[/dim]")
    console.print(table)

    for service in result.dropped_services:
        console.print(f"[yellow]⚠️  Skipped unresolvable service type {service}[/yellow]")
    if result.unresolved_units:
        console.print(
            f"[dim]{len(result.unresolved_units)} compiled units could not be resolved "
            f"and were ignored[/dim]"
        )


@click.group()
@click.version_option(__version__, prog_name="serviceloader")
def cli():
    """serviceloader - generate META-INF/services files from compiled classes."""
    pass


@cli.command()
@click.option('--config',
              'config_path',
              help='Path to configuration file (YAML or JSON)',
              type=click.Path(exists=True, file_okay=True, dir_okay=False))
@click.option('--classes-dir',
              help='Compiled output directory to scan',
              type=click.Path(file_okay=False, dir_okay=True))
@click.option('--classpath', '-cp',
              multiple=True,
              help='Classpath entry (repeatable, or an os.pathsep-separated list)')
@click.option('--service', '-s',
              'services',
              multiple=True,
              help='Service type to generate a provider file for (repeatable)')
@click.option('--include',
              'includes',
              multiple=True,
              help='Only keep implementations matching this glob (repeatable)')
@click.option('--exclude',
              'excludes',
              multiple=True,
              help='Drop implementations matching this glob (repeatable)')
@click.option('--skip-missing-services',
              is_flag=True,
              help='Skip service types that cannot be resolved instead of failing')
@click.option('--java-home',
              help='JDK used to resolve platform types (defaults to JAVA_HOME, then java on PATH)',
              type=click.Path(file_okay=False, dir_okay=True))
@click.option('--output-dir',
              help='Root directory for META-INF/services (defaults to the classes directory)',
              type=click.Path(file_okay=False, dir_okay=True))
@click.option('--dry-run',
              is_flag=True,
              help='Print the discovered implementations without writing files')
@click.option('--verbose',
              is_flag=True,
              help='Enable verbose output')
def generate(config_path: Optional[str],
             classes_dir: Optional[str],
             classpath: Tuple[str, ...],
             services: Tuple[str, ...],
             includes: Tuple[str, ...],
             excludes: Tuple[str, ...],
             skip_missing_services: bool,
             java_home: Optional[str],
             output_dir: Optional[str],
             dry_run: bool,
             verbose: bool):
    """
    Generate service provider files for the given service types.

    Examples:

    \b
    # Single service, default target/classes
    serviceloader generate -s com.example.spi.Codec

    \b
    # Explicit classpath and filters
    serviceloader generate -s com.example.spi.Codec -cp lib/api.jar --exclude '*Test*'

    \b
    # Using a configuration file
    serviceloader generate --config serviceloader.yaml
    """
    load_dotenv(Path.cwd() / ".env")

    overrides: Dict[str, Any] = {}
    if classes_dir:
        overrides["classes_directory"] = classes_dir
    if classpath:
        overrides["classpath"] = _split_classpath(classpath)
    if services:
        overrides["services"] = list(services)
    if includes:
        overrides["includes"] = list(includes)
    if excludes:
        overrides["excludes"] = list(excludes)
    if skip_missing_services:
        overrides["fail_on_missing_service"] = False
    if java_home:
        overrides["java_home"] = java_home
    if output_dir:
        overrides["output_directory"] = output_dir
    if verbose:
        overrides["verbose"] = True

    try:
        config = _load_config(config_path, overrides)
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        click.echo(f"❌ Error loading configuration: {e}", err=True)
        raise click.Abort()

    _configure_logging(config.verbose)
    console = Console()

    try:
        result = discover(config.to_request())
    except ServiceLoaderError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    _render_summary(console, result)

    if dry_run:
        click.echo("Dry run: no files written")
        return

    writer = ServiceFileWriter(config.resolved_output_directory)
    try:
        written = writer.write(result)
    except ServiceLoaderError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    click.echo(f"✅ {len(written)} service files written to {writer.services_directory}")


@cli.command()
@click.argument('directory', type=click.Path(file_okay=False, dir_okay=True))
@click.option('--verbose', is_flag=True, help='Enable verbose output')
def scan(directory: str, verbose: bool):
    """List the binary names of the compiled classes in DIRECTORY."""
    _configure_logging(verbose)
    names = sorted(list_compiled_units(directory))
    for name in names:
        click.echo(name)
    click.echo(f"📁 Found {len(names)} compiled classes", err=True)


@cli.command()
@click.option('--config-template',
              default='serviceloader.yaml',
              help='Output file for configuration template')
def init_config(config_template: str):
    """Generate a configuration template file."""
    config = GeneratorConfig(services=["com.example.spi.MyService"])
    config.save(config_template)
    click.echo(f"📄 Configuration template created: {config_template}")
    click.echo("Edit the file with your settings and use with --config option")


def main():
    cli()


if __name__ == '__main__':
    main()
