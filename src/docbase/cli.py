"""Command-line interface for DocBase.

This module provides commands for inspecting and maintaining collection
documents stored as JSON files.
"""

import json
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError

from docbase.core.config import get_settings
from docbase.core.logging import configure_logging, get_logger
from docbase.domain.entities.collection import Collection
from docbase.domain.services.collection_service import CollectionService
from docbase.domain.services.collection_validator import CollectionValidator
from docbase.domain.services.display_service import display_value
from docbase.domain.services.query_service import visible_fields
from docbase.domain.services.relation_resolver import MappingResolver
from docbase.infrastructure.schemas import dump_collection, load_collection


def read_collection(path: str) -> Collection:
    """Load a collection document, turning parse failures into CLI errors."""
    try:
        return load_collection(Path(path).read_bytes())
    except ValidationError as e:
        raise click.ClickException(f"{path} is not a valid collection document:\n{e}") from e


def write_collection(path: str, collection: Collection) -> None:
    Path(path).write_text(
        json.dumps(dump_collection(collection), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def load_peers(paths: tuple[str, ...]) -> tuple[MappingResolver, dict[str, str]]:
    """Resolver over the peer documents, plus collection id -> file path."""
    resolver = MappingResolver()
    locations: dict[str, str] = {}
    for path in paths:
        peer = read_collection(path)
        resolver.add(peer)
        locations[peer.id] = path
    return resolver, locations


@click.group()
@click.version_option(version="0.1.0", prog_name="DocBase")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides DOCBASE_LOG_LEVEL)",
)
def cli(log_level: str | None) -> None:
    """DocBase - computed fields, views and relations for document databases."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)


@cli.command()
def info() -> None:
    """Display DocBase configuration."""
    settings = get_settings()

    click.echo(f"""
{settings.app_name}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}

Relations:
  Inference:    {settings.relation_inference_enabled}
  Backlinks:    {settings.backlink_sync_enabled}

Computed Fields:
  Max Formula:  {settings.formula_max_length} characters
  Truthy:       {', '.join(settings.checkbox_truthy_values)}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
def validate(document: str) -> None:
    """Check a collection document's schema and views."""
    collection = read_collection(document)
    errors = CollectionValidator.validate(collection.name, collection.schema, collection.views)
    if errors:
        for error in errors:
            click.echo(f"{error.field}: {error.message} [{error.code}]", err=True)
        raise SystemExit(1)
    click.echo(
        f"{collection.name}: {len(collection.schema)} fields, "
        f"{len(collection.views)} views, {len(collection.records)} records"
    )


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.argument("view_id")
@click.option(
    "--peer",
    "peers",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Document of a related collection (repeatable)",
)
def query(document: str, view_id: str, peers: tuple[str, ...]) -> None:
    """Print the records of a view as tab-separated display values."""
    collection = read_collection(document)
    view = collection.get_view(view_id)
    if view is None:
        raise click.ClickException(f"View '{view_id}' not found in {collection.name}")

    resolver, _ = load_peers(peers)
    resolver.add(collection)
    fields = visible_fields(collection.schema, view)

    click.echo("\t".join(field.name for field in fields))
    for record in CollectionService().query(collection, view_id, resolver):
        click.echo(
            "\t".join(
                display_value(record, field.id, collection.schema, collection, resolver)
                for field in fields
            )
        )


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--peer",
    "peers",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Document of a related collection (repeatable)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Report changed collections without writing them",
)
def sync(document: str, peers: tuple[str, ...], dry_run: bool) -> None:
    """Infer relation targets and reconcile backlinks for a saved document.

    The document itself is rewritten when inference fills in a relation
    target; peer documents are rewritten when their backlinks change.
    """
    logger = get_logger(__name__)
    service = CollectionService()
    collection = read_collection(document)
    resolver, locations = load_peers(peers)

    if service.prepare_for_save(collection, list(resolver) + [collection]):
        if not dry_run:
            write_collection(document, collection)
        click.echo(f"Updated relation targets in {collection.name}")

    resolver.add(collection)
    locations.setdefault(collection.id, document)

    def writer(peer: Collection) -> None:
        write_collection(locations[peer.id], peer)

    result = service.after_save(collection, resolver, None if dry_run else writer)
    for peer in result.changed:
        click.echo(f"Backlinks changed in {peer.name}")
    for collection_id, message in result.failed.items():
        click.echo(f"Failed to write {collection_id}: {message}", err=True)

    logger.debug("Sync finished", collection_id=collection.id, dry_run=dry_run)
    if not result.ok:
        raise SystemExit(1)


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `docbase` command is run
    or when using `python -m docbase`.
    """
    cli()


if __name__ == "__main__":
    main()
