"""
PathForge CLI.

Command-line interface for inspecting persisted path manifests.
"""

from __future__ import annotations

import asyncio
import logging

import click

from pathforge import __version__
from pathforge.config import ManifestStageConfig, load_stage_config
from pathforge.core.errors import ManifestError


def _load_manifest(build_folder: str, manifest_path: str):
    from pathforge.core.manifest.loader import ManifestLoader

    config = ManifestStageConfig(build_folder=build_folder, manifest_path=manifest_path)
    snapshot_file = config.manifest_file
    if not snapshot_file.exists():
        click.echo(f"Error: Manifest not found: {snapshot_file}", err=True)
        raise SystemExit(1)

    try:
        return asyncio.run(ManifestLoader.load(snapshot_file))
    except ManifestError as e:
        click.echo(f"Error loading manifest: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True), help="Stage config YAML")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """PathForge: origin/output path manifests for incremental builds."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_stage_config(config) if config else ManifestStageConfig()
    except ValueError as e:
        click.echo(f"Error parsing config: {e}", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("build_folder", required=False)
@click.option("--manifest-path", "-m", default=None, help="Manifest file name")
@click.option("--format", "-f", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def show(ctx: click.Context, build_folder: str | None, manifest_path: str | None, fmt: str) -> None:
    """Show every origin -> output entry in a build's manifest."""
    config: ManifestStageConfig = ctx.obj["config"]
    manifest = _load_manifest(
        build_folder or config.build_folder,
        manifest_path or config.manifest_path,
    )

    if fmt == "json":
        click.echo(manifest.to_json())
        return

    from rich.console import Console
    from rich.table import Table

    console = Console()
    table = Table(title=f"Manifest ({len(manifest)} entries)")
    table.add_column("Origin", style="cyan")
    table.add_column("Output", style="green")

    for origin, output in sorted(manifest.items()):
        table.add_row(origin, output)

    console.print(table)


@main.command()
@click.argument("path")
@click.option("--build-folder", "-b", default=None, help="Build output folder")
@click.option("--manifest-path", "-m", default=None, help="Manifest file name")
@click.option("--reverse", "-r", is_flag=True, help="Resolve an output path back to its origin")
@click.pass_context
def resolve(
    ctx: click.Context,
    path: str,
    build_folder: str | None,
    manifest_path: str | None,
    reverse: bool,
) -> None:
    """Resolve an origin path to its output (or the reverse)."""
    config: ManifestStageConfig = ctx.obj["config"]
    manifest = _load_manifest(
        build_folder or config.build_folder,
        manifest_path or config.manifest_path,
    )

    result = manifest.get_by_value(path) if reverse else manifest.get_by_key(path)
    if result is None:
        click.echo(f"Not in manifest: {path}", err=True)
        raise SystemExit(1)
    click.echo(result)


if __name__ == "__main__":
    main()
