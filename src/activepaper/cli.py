"""Maintenance CLI for an activepaper store.

Provides commands to create and repair the database and to inspect search
results, the review queue and the concept graph from a terminal.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer

from activepaper.models.concept import ConceptGraph
from activepaper.models.review import ReviewCardWithContext
from activepaper.models.search import SearchResults
from activepaper.services.factory import DEFAULT_DB_FILENAME, create_store
from activepaper.services.schema import ReconcileResult, SchemaStatus

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    context_class=dict,
    cache_logger_on_first_use=False,
)

logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="activepaper",
    help="""Inspect and maintain the activepaper reading store.

Examples:

  # Create (or upgrade) the store
  activepaper init --db ~/.activepaper/activepaper.db

  # Search documents, interactions and concepts
  activepaper search "gradient descent"

  # How many review cards are due
  activepaper review-status""",
    rich_markup_mode="markdown",
)

_DB_HELP = f"SQLite database file (default: ./{DEFAULT_DB_FILENAME})"


def _resolve_db(db: Optional[str]) -> Path:
    return Path(db) if db else Path.cwd() / DEFAULT_DB_FILENAME


def _require_existing_db(db: Optional[str]) -> Path:
    db_path = _resolve_db(db)
    if not db_path.exists():
        logger.error("database_not_found", db_path=str(db_path))
        typer.echo("No database found. Run 'activepaper init' first.")
        raise typer.Exit(1)
    return db_path


@app.command()
def init(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
) -> None:
    """Create the database, or upgrade it to the current schema version."""
    db_path = _resolve_db(db)

    async def run_init() -> SchemaStatus:
        store = create_store(db_path)
        try:
            return await store.open()
        finally:
            await store.close()

    status = asyncio.run(run_init())
    typer.echo(f"Initialized {db_path} (schema version {status.version})")


@app.command()
def repair(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
) -> None:
    """Re-create any missing tables or full-text indexes without touching existing data."""
    db_path = _require_existing_db(db)

    async def run_repair() -> ReconcileResult:
        store = create_store(db_path)
        try:
            await store.schema.migrate()
            return await store.schema.reconcile(reason="manual")
        finally:
            await store.close()

    result = asyncio.run(run_repair())
    if result.repaired:
        typer.echo(f"Repaired: {', '.join(result.repaired_tables)}")
    else:
        typer.echo("Schema is complete; nothing to repair.")


@app.command()
def search(
    query: str = typer.Argument(
        ...,
        help="Search query",
    ),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Maximum number of results per type",
    ),
) -> None:
    """Search documents, interactions and concepts."""
    db_path = _require_existing_db(db)

    async def run_search() -> SearchResults:
        async with create_store(db_path) as store:
            return await store.search.search_all(query, limit_per_type=limit)

    results = asyncio.run(run_search())
    if results.is_empty():
        typer.echo(f"No results for '{query}'")
        return

    if results.documents:
        typer.echo("Documents:")
        for document in results.documents:
            typer.echo(f"  {document.filename}  ({document.filepath})")
    if results.interactions:
        typer.echo("Interactions:")
        for interaction in results.interactions:
            typer.echo(f"  [{interaction.action_type}] {interaction.filename}: {interaction.snippet}")
    if results.concepts:
        typer.echo("Concepts:")
        for concept in results.concepts:
            typer.echo(f"  {concept.name}")


@app.command("review-status")
def review_status(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
) -> None:
    """Show how many review cards are due and which one is next."""
    db_path = _require_existing_db(db)

    async def run_status() -> tuple[int, ReviewCardWithContext | None]:
        async with create_store(db_path) as store:
            return await store.reviews.get_due_review_count(), await store.reviews.get_next_review_card()

    due_count, next_card = asyncio.run(run_status())
    typer.echo(f"{due_count} review card(s) due")
    if next_card is not None:
        typer.echo(f"Next: {next_card.question}  ({next_card.document_filename})")


@app.command()
def concepts(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of concepts to list",
    ),
) -> None:
    """List the most frequent concepts and their strongest co-occurrences."""
    db_path = _require_existing_db(db)

    async def run_graph() -> ConceptGraph:
        async with create_store(db_path) as store:
            return await store.graph.get_concept_graph()

    graph = asyncio.run(run_graph())
    if not graph.nodes:
        typer.echo("No concepts recorded yet.")
        return

    names = {node.id: node.name for node in graph.nodes}
    for node in graph.nodes[:limit]:
        typer.echo(f"{node.name}: {node.total_occurrences} occurrence(s) in {node.document_count} document(s)")
    if graph.links:
        typer.echo("Strongest links:")
        for link in graph.links[:limit]:
            typer.echo(f"  {names[link.source]} <-> {names[link.target]} ({link.weight})")


@app.command()
def version() -> None:
    """Show version information."""
    from activepaper import __version__

    typer.echo(f"activepaper {__version__}")
