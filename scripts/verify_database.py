"""Verify that the library database collections are populated.

This script reports:
1. Document count per collection (books, authors, users, reviews, issueDetails)
2. A one-line summary of one sample document per non-empty collection
3. Relationship checks between books and authors:
   - books whose first author is an embedded {_id, name} summary
   - authors that list at least one linked book

The script is read-only. Any store error is fatal (exit code 1).

Usage:
    python -m scripts.verify_database
    python -m scripts.verify_database --env-file server/.env --strict
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from pymongo.errors import PyMongoError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.seeding.config import StoreConfig, configure_logging, load_environment
from src.store.mongo import (
    AUTHORS,
    BOOKS,
    COLLECTIONS,
    ISSUE_DETAILS,
    REVIEWS,
    USERS,
    get_database,
    get_mongo_client,
)

if TYPE_CHECKING:
    from pymongo.database import Database

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


@dataclass
class CollectionSummary:
    """Document count and sample line for one collection."""

    name: str
    count: int
    sample: str | None = None


@dataclass
class RelationshipCheck:
    """Ratio of documents satisfying a structural expectation."""

    name: str
    matching: int
    total: int

    @property
    def complete(self) -> bool:
        return self.matching == self.total

    @property
    def ratio(self) -> str:
        return f"{self.matching}/{self.total}"


@dataclass
class VerificationReport:
    collections: list[CollectionSummary] = field(default_factory=list)
    relationships: list[RelationshipCheck] = field(default_factory=list)

    @property
    def all_complete(self) -> bool:
        return all(r.complete for r in self.relationships)


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


def _get(doc: Any, key: str, default: Any = UNKNOWN) -> Any:
    if isinstance(doc, dict) and doc.get(key) is not None:
        return doc[key]
    return default


def summarize_sample(collection_name: str, doc: dict[str, Any]) -> str:
    """Render a one-line, type-specific summary of a sample document.

    Missing fields render as Unknown (or 0 for counts) instead of raising.
    """
    if collection_name == BOOKS:
        first_author = _first(doc.get("authors"))
        return f'"{_get(doc, "title")}" by {_get(first_author, "name")}'
    if collection_name == AUTHORS:
        books = doc.get("books")
        book_count = len(books) if isinstance(books, list) else 0
        return f"{_get(doc, 'name')} ({book_count} books)"
    if collection_name == USERS:
        return f"{_get(doc, 'name')} (Admin: {_get(doc, 'isAdmin')})"
    if collection_name == REVIEWS:
        return f"{_get(doc, 'rating', 0)}⭐ review by {_get(doc, 'name')}"
    if collection_name == ISSUE_DETAILS:
        book_title = _get(doc.get("book"), "title", "Unknown book")
        return f"{_get(doc, 'recordType')} for {book_title}"
    return str(doc.get("_id", UNKNOWN))


def has_embedded_author(book: dict[str, Any]) -> bool:
    """First author entry is an object with both _id and name."""
    first_author = _first(book.get("authors"))
    return (
        isinstance(first_author, dict)
        and bool(first_author.get("_id"))
        and bool(first_author.get("name"))
    )


def has_linked_books(author: dict[str, Any]) -> bool:
    books = author.get("books")
    return isinstance(books, list) and len(books) > 0


def summarize_collections(db: Database) -> list[CollectionSummary]:
    """Count documents and sample one per collection, in fixed order."""
    summaries = []
    for name in COLLECTIONS:
        collection = db[name]
        count = collection.count_documents({})
        sample = None
        if count > 0:
            doc = collection.find_one({})
            if doc is not None:
                sample = summarize_sample(name, doc)
        summaries.append(CollectionSummary(name=name, count=count, sample=sample))
    return summaries


def check_relationships(db: Database) -> list[RelationshipCheck]:
    """Scan books and authors for denormalization consistency."""
    books = list(db[BOOKS].find({}))
    authors = list(db[AUTHORS].find({}))

    return [
        RelationshipCheck(
            name="Books with proper author format",
            matching=sum(1 for b in books if has_embedded_author(b)),
            total=len(books),
        ),
        RelationshipCheck(
            name="Authors with linked books",
            matching=sum(1 for a in authors if has_linked_books(a)),
            total=len(authors),
        ),
    ]


def run_verification(db: Database) -> VerificationReport:
    """Run all read-only checks. Store errors propagate."""
    return VerificationReport(
        collections=summarize_collections(db),
        relationships=check_relationships(db),
    )


def print_report(report: VerificationReport) -> None:
    table = Table(title="📊 Database Collection Summary")
    table.add_column("Collection", style="cyan")
    table.add_column("Documents", justify="right")
    table.add_column("Sample")

    for summary in report.collections:
        sample = escape(summary.sample) if summary.sample else "[dim]-[/dim]"
        table.add_row(summary.name, str(summary.count), sample)

    console.print(table)
    console.print()

    table = Table(title="🔗 Data Relationship Verification")
    table.add_column("Check", style="cyan")
    table.add_column("Ratio", justify="right")
    table.add_column("Status", justify="center")

    for check in report.relationships:
        status = "✓" if check.complete else "✗"
        color = "green" if check.complete else "yellow"
        table.add_row(check.name, check.ratio, f"[{color}]{status}[/{color}]")

    console.print(table)
    console.print()


@click.command()
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Env file with DATABASE_URI / DATABASE_NAME (default: nearest .env)",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit non-zero when a relationship check is incomplete",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
def main(env_file: Path | None, strict: bool, verbose: bool) -> None:
    """Verify all library collections are properly populated."""
    load_environment(env_file)
    store = StoreConfig.from_env()

    configure_logging(verbose)

    console.print("\n[bold blue]🔗 Connecting to MongoDB...[/bold blue]\n")
    client = get_mongo_client(store)

    try:
        report = run_verification(get_database(client, store))
    except PyMongoError as e:
        err_console.print(f"[bold red]❌ Error verifying database:[/bold red] {escape(str(e))}")
        sys.exit(1)
    finally:
        client.close()
        logger.debug("MongoDB connection closed")

    print_report(report)

    if strict and not report.all_complete:
        console.print("[bold yellow]⚠ Some relationship checks are incomplete[/bold yellow]")
        sys.exit(1)

    console.print("[bold green]🎉 Database verification completed successfully![/bold green]")


if __name__ == "__main__":
    main()
