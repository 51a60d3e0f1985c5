"""Command-line interface for the ASC registry pipeline"""

import json
from typing import Optional

import click
import pandas as pd
import structlog

from asc_registry.config import settings
from asc_registry.exceptions import RegistryError
from asc_registry.ingestion.publishers import publish_generation
from asc_registry.observability import configure_logging
from asc_registry.pipeline import create_registry
from asc_registry.services.snapshots import DATASET_NAMES

logger = structlog.get_logger(__name__)


def _registry(ctx: click.Context, auto_refresh: bool = False):
    return create_registry(
        ctx.obj['database_url'],
        regions_path=ctx.obj['regions_path'],
        auto_refresh=auto_refresh,
    )


def _fail(message: str, error: Exception):
    logger.error(message, error=str(error), exc_info=True)
    raise click.ClickException(f"{message}: {error}") from error


@click.group()
@click.option('--database-url', default=None, help='SQLAlchemy database URL (default: ASC_DATABASE_URL)')
@click.option('--regions', 'regions_path', default=None, type=click.Path(dir_okay=False),
              help='Region definition YAML (default: bundled Census regions)')
@click.option('--log-level', default=None, help='Log level (default: ASC_LOG_LEVEL)')
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], regions_path: Optional[str], log_level: Optional[str]):
    """ASC appraiser registry analytics"""
    configure_logging(level=log_level)
    ctx.ensure_object(dict)
    ctx.obj['database_url'] = database_url or settings.database_url
    ctx.obj['regions_path'] = regions_path or settings.regions_path


@cli.command('load-licenses')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--sep', default=',', help='Field delimiter')
@click.pass_context
def load_licenses(ctx: click.Context, path: str, sep: str):
    """Replace the license table with a registry export"""
    try:
        registry = _registry(ctx)
        result = registry.load_license_csv(path, sep=sep)
    except RegistryError as e:
        _fail("Loading licenses failed", e)
    click.echo(f"Loaded {result.metrics['valid_rows']} license rows from {path}")


@cli.command('load-zips')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--sep', default=',', help='Field delimiter')
@click.pass_context
def load_zips(ctx: click.Context, path: str, sep: str):
    """Replace the ZIP geography table"""
    try:
        registry = _registry(ctx)
        result = registry.load_zip_csv(path, sep=sep)
    except RegistryError as e:
        _fail("Loading ZIPs failed", e)
    click.echo(
        f"Loaded {result.metrics['valid_rows']} ZIP rows "
        f"({result.metrics['canonical_rows']} canonical, {result.metrics['reject_rows']} rejected)"
    )


@cli.command()
@click.pass_context
def refresh(ctx: click.Context):
    """Rebuild every derived dataset"""
    try:
        generation = _registry(ctx).recompute_all()
    except RegistryError as e:
        _fail("Refresh failed", e)
    click.echo(f"Generation {generation.version} built")
    for name, info in generation.summary().items():
        click.echo(f"   {name}: {info['rows']} rows ({info['digest'][:12]})")


@cli.command()
@click.argument('dataset', type=click.Choice(DATASET_NAMES))
@click.option('--limit', '-n', default=20, show_default=True, help='Rows to print')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON records')
@click.pass_context
def show(ctx: click.Context, dataset: str, limit: int, as_json: bool):
    """Rebuild and print one derived dataset"""
    try:
        generation = _registry(ctx).recompute_all()
    except RegistryError as e:
        _fail("Refresh failed", e)

    frame = generation.dataset(dataset).head(limit)
    if as_json:
        click.echo(frame.to_json(orient='records', date_format='iso', default_handler=str, indent=2))
    else:
        with pd.option_context('display.max_columns', None, 'display.width', 200):
            click.echo(frame.to_string(index=False))


@cli.command()
@click.option('--output-dir', '-o', default=None, help='Export directory (default: ASC_EXPORT_DIR)')
@click.option('--format', 'fmt', type=click.Choice(['parquet', 'csv']), default='parquet', show_default=True)
@click.pass_context
def export(ctx: click.Context, output_dir: Optional[str], fmt: str):
    """Rebuild and write every dataset plus a manifest"""
    try:
        generation = _registry(ctx).recompute_all()
        result = publish_generation(generation, output_dir or settings.export_dir, fmt=fmt)
    except RegistryError as e:
        _fail("Export failed", e)
    click.echo(f"Wrote {len(result.file_paths)} datasets to {result.output_dir}")
    click.echo(f"   Manifest: {result.manifest_path}")


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show base-table row counts"""
    registry = _registry(ctx)
    counts = {
        'database_url': ctx.obj['database_url'],
        'license_rows': registry.licenses.count(),
        'zip_rows': registry.zips.count(),
        'regions': [d.region for d in registry.regions],
    }
    click.echo(json.dumps(counts, indent=2))


if __name__ == '__main__':
    cli()
