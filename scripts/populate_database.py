"""Idempotently populate the library database with reference data.

Safe to run multiple times: existing records are detected and skipped,
only missing data is created.

This script seeds:
1. Users (login-or-create through the API)
2. Authors (inserted directly into MongoDB when absent by name)
3. Books (created through the API when absent by ISBN)
4. Reviews (for books that have none yet)
5. Reservations (duplicates are rejected by the server and logged)

Exit codes:
- 0: run completed (individual item failures are reported, not fatal)
- 1: invalid dataset, unreachable MongoDB, or no admin token
     (or any failed item with --strict)

Usage:
    python -m scripts.populate_database
    python -m scripts.populate_database --env-file server/.env --api-url http://localhost:5001
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress
from rich.table import Table

from src.library_api.client import LibraryApiClient
from src.seeding.config import PopulateConfig, configure_logging, load_environment
from src.seeding.errors import SeedError
from src.seeding.fixtures import DEFAULT_DATASET_PATH, load_dataset
from src.seeding.pipeline import PopulateResult, run_pipeline
from src.seeding.results import ItemStatus, Stage
from src.store.mongo import AUTHORS, get_database, get_mongo_client, ping

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def print_summary(result: PopulateResult) -> None:
    """Print per-stage outcome counts and any failures."""
    report = result.report

    table = Table(title="📊 Population Summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Created", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Failed", justify="right")

    for stage in Stage:
        failed = report.count(stage, ItemStatus.FAILED)
        failed_text = f"[red]{failed}[/red]" if failed else "0"
        table.add_row(
            stage.value,
            str(report.count(stage, ItemStatus.CREATED)),
            str(report.count(stage, ItemStatus.SKIPPED)),
            failed_text,
        )

    console.print(table)
    console.print()
    console.print(f"  📚 Books: {len(result.books)}")
    console.print(f"  👤 Authors: {len(result.author_ids)}")
    console.print(f"  👥 Users: {len(result.users)}")
    console.print()

    if report.has_failures:
        console.print("[bold yellow]⚠ Some items failed:[/bold yellow]")
        for failure in report.failures:
            line = f"[{failure.stage.value}] {failure.key}: {failure.reason or 'Failed'}"
            console.print(f"  - {escape(line)}")
        console.print()


@click.command()
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Env file with DATABASE_URI / DATABASE_NAME (default: nearest .env)",
)
@click.option(
    "--dataset",
    type=click.Path(path_type=Path),
    default=DEFAULT_DATASET_PATH,
    help="Path to the seed dataset JSON",
)
@click.option(
    "--api-url",
    type=str,
    default=None,
    help="Library API base URL (default: LIBRARY_API_URL or http://localhost:5001)",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit non-zero if any item failed",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
def main(
    env_file: Path | None,
    dataset: Path,
    api_url: str | None,
    strict: bool,
    verbose: bool,
) -> None:
    """Idempotently populate the library database."""
    load_environment(env_file)
    configure_logging(verbose)
    config = PopulateConfig.from_env(
        api_url=api_url,
        dataset_path=dataset,
        strict=strict,
        verbose=verbose,
    )

    console.print("\n[bold blue]🚀 Starting idempotent database population...[/bold blue]\n")

    client = get_mongo_client(config.store)
    try:
        seed_data = load_dataset(config.dataset_path)
        ping(client)
        authors = get_database(client, config.store)[AUTHORS]

        with LibraryApiClient(config.api_url, timeout=config.api_timeout) as api:
            with Progress(console=console) as progress:
                task = progress.add_task("[green]Populating...", total=len(Stage))

                def on_stage(stage: Stage) -> None:
                    console.print(f"  ✓ {stage.value}")
                    progress.update(task, advance=1)

                result = run_pipeline(api, authors, seed_data, on_stage=on_stage)
    except SeedError as e:
        err_console.print(f"[bold red]❌ {escape(str(e))}[/bold red]")
        sys.exit(1)
    finally:
        client.close()

    console.print()
    print_summary(result)

    if config.strict and result.report.has_failures:
        sys.exit(1)

    console.print("[bold green]🎉 Database population completed![/bold green]")
    console.print("[dim]Safe to run multiple times - only missing data is created[/dim]")


if __name__ == "__main__":
    main()
