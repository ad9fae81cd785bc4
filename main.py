#!/usr/bin/env python3
"""MapSync - spreadsheet to target-schema mapping tool."""
import logging
import sys

import click
from colorama import Fore, Style, init

from config import app_config
from mapsync import __version__
from mapsync.cli.commands import MappingCLI, run_safely

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}MapSync{Fore.CYAN}                              ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Spreadsheet → Schema Mapping{Fore.CYAN}         ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


source_argument = click.argument("source", required=False, type=click.Path(exists=True))
demo_option = click.option("--demo", is_flag=True, help="Use the built-in sample dataset")
sheet_option = click.option("--sheet", default=None, help="Excel sheet to read")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--local", is_flag=True, help="Use the local JSON registry store")
@click.pass_context
def cli(ctx, verbose, local):
    """MapSync - map spreadsheet columns onto target table schemas."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = MappingCLI(app_config, local=local)


def finish(ok: bool):
    if not ok:
        sys.exit(1)


@cli.command()
@click.pass_obj
def schemas(tool: MappingCLI):
    """List the target schema catalog."""
    print_banner()
    finish(run_safely(tool.list_schemas))


@cli.command()
@source_argument
@demo_option
@sheet_option
@click.pass_obj
def inspect(tool: MappingCLI, source, demo, sheet):
    """Show a file's headers and inferred column types."""
    finish(run_safely(lambda: tool.inspect(tool.load_source(source, demo, sheet))))


@cli.command()
@source_argument
@demo_option
@sheet_option
@click.option("--group", "group_id", required=True, help="Mapping group id")
@click.pass_obj
def automap(tool: MappingCLI, source, demo, sheet, group_id):
    """Auto-map a file onto every schema of a group."""
    def action():
        tool.load_source(source, demo, sheet)
        tool.auto_map(group_id)

    finish(run_safely(action))


@cli.command()
@source_argument
@demo_option
@sheet_option
@click.option("--schema", "schema_id", required=True, help="Target schema id")
@click.option("--min-confidence", type=float, default=None, help="Minimum confidence to apply")
@click.pass_obj
def suggest(tool: MappingCLI, source, demo, sheet, schema_id, min_confidence):
    """AI-assisted semantic matching for one schema."""
    def action():
        tool.load_source(source, demo, sheet)
        tool.suggest(schema_id, min_confidence)

    finish(run_safely(action))


@cli.command()
@source_argument
@demo_option
@sheet_option
@click.option("--schema", "schema_id", required=True, help="Target schema id")
@click.option("--registry", "registry_id", default=None, help="Saved registry to replay")
@click.option("--limit", type=int, default=None, help="Number of rows to preview")
@click.pass_obj
def preview(tool: MappingCLI, source, demo, sheet, schema_id, registry_id, limit):
    """Preview transformed rows for one schema."""
    def action():
        tool.load_source(source, demo, sheet)
        if registry_id:
            tool.load_registry(registry_id)
        else:
            group = tool.catalog.group_for_schema(schema_id)
            if group:
                tool.workspace.auto_map_group(group.id)
        tool.show_mappings(schema_id)
        tool.preview(schema_id, limit or app_config.preview_limit)

    finish(run_safely(action))


@cli.command()
@source_argument
@demo_option
@sheet_option
@click.option("--group", "group_id", required=True, help="Mapping group id")
@click.option("--name", required=True, help="Registry name")
@click.option("--registry", "registry_id", default=None, help="Registry to update")
@click.option("--step", "steps", multiple=True, help="SCHEMA_ID.FIELD_ID:TYPE[:VALUE[:REPLACE_WITH]]")
@click.pass_obj
def save(tool: MappingCLI, source, demo, sheet, group_id, name, registry_id, steps):
    """Auto-map a file and save the mapping as a named registry."""
    def action():
        tool.load_source(source, demo, sheet)
        if registry_id:
            tool.load_registry(registry_id)
        else:
            tool.workspace.new_registry(group_id)
            tool.workspace.auto_map_group(group_id)
        for option in steps:
            schema_id, _, step = option.partition(".")
            tool.apply_steps(schema_id, [step])
        tool.save(name, group_id)

    finish(run_safely(action))


@cli.command()
@click.option("--group", "group_id", default=None, help="Only this mapping group")
@click.pass_obj
def registries(tool: MappingCLI, group_id):
    """List saved registries."""
    finish(run_safely(lambda: tool.list_registries(group_id)))


@cli.command()
@click.argument("registry_id")
@click.confirmation_option(prompt="Permanently remove this registry?")
@click.pass_obj
def delete(tool: MappingCLI, registry_id):
    """Delete a saved registry."""
    finish(run_safely(lambda: tool.delete(registry_id)))


@cli.command()
@click.argument("registry_id")
@click.option("--format", "output_format", type=click.Choice(["csv", "json"]), default="csv")
@click.option("--out", "output_dir", default=None, help="Output directory")
@click.pass_obj
def export(tool: MappingCLI, registry_id, output_format, output_dir):
    """Export a saved registry as a mapping report."""
    finish(run_safely(lambda: tool.export(registry_id, output_format, output_dir)))


@cli.command()
@source_argument
@demo_option
@sheet_option
@click.option("--registry", "registry_id", required=True, help="Saved registry to replay")
@click.confirmation_option(prompt="This will load data into ALL tables of the registry's group. Proceed?")
@click.pass_obj
def sync(tool: MappingCLI, source, demo, sheet, registry_id):
    """Replay a saved registry to bulk-load every table of its group."""
    def action():
        tool.load_source(source, demo, sheet)
        config = tool.load_registry(registry_id)
        report = tool.sync(config.group_id)
        if report.failed:
            raise SystemExit(1)

    finish(run_safely(action))


if __name__ == "__main__":
    cli()
