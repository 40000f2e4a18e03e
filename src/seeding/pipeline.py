"""Idempotent population of the library database.

Stages run strictly in order, each creating only what is missing:

1. Admin credential (fatal if absent)
2. Users via the login-or-create endpoint
3. Authors via direct insert-if-absent in the store
4. Books via the API, embedding an {_id, name} author summary
5. Reviews for books that have none
6. Reservations, relying on the server to reject duplicates

Authors are the only entity written directly to the store; everything
else goes through the API so server-side rules apply.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bson import ObjectId
from pymongo.errors import PyMongoError

from src.library_api.client import LibraryApiClient
from src.seeding.errors import AdminCredentialError
from src.seeding.fixtures import (
    AuthorFixture,
    BookDefaults,
    BookFixture,
    ReservationFixture,
    SeedDataset,
)
from src.seeding.results import ItemStatus, RunReport, Stage

if TYPE_CHECKING:
    from pymongo.collection import Collection

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "already exists"


@dataclass
class SeedUser:
    """A user with a live session token."""

    name: str
    token: str


@dataclass
class ResolvedBook:
    """A book known to exist after the books stage.

    document is the full payload for books created in this run and None
    for books that already existed, which are only known by id and title.
    """

    isbn: str
    title: str
    document: dict[str, Any] | None = None


@dataclass
class PopulateResult:
    """Artifacts and item outcomes of a full populate run."""

    report: RunReport = field(default_factory=RunReport)
    users: list[SeedUser] = field(default_factory=list)
    author_ids: dict[str, ObjectId] = field(default_factory=dict)
    books: list[ResolvedBook] = field(default_factory=list)


def acquire_admin_token(api: LibraryApiClient, username: str) -> str | None:
    """Log in as the privileged user and return its bearer token."""
    result = api.login(username)
    if not result.ok or not isinstance(result.data, dict):
        return None
    return result.data.get("jwt") or None


def ensure_users(
    api: LibraryApiClient,
    names: list[str],
    report: RunReport,
) -> list[SeedUser]:
    """Log in (creating if needed) every user; failed names are dropped."""
    users: list[SeedUser] = []

    for name in names:
        result = api.login(name)
        token = result.data.get("jwt") if result.ok and isinstance(result.data, dict) else None
        if token:
            users.append(SeedUser(name=name, token=token))
            report.record(Stage.USERS, name, ItemStatus.CREATED)
            logger.info(f"Created/verified user: {name}")
        else:
            reason = result.error or "no token in login response"
            report.record(Stage.USERS, name, ItemStatus.FAILED, reason)
            logger.warning(f"Could not log in user {name}: {reason}")

    return users


def ensure_authors(
    collection: Collection,
    authors: list[AuthorFixture],
    report: RunReport,
) -> dict[str, ObjectId]:
    """Insert authors missing by exact name; return name -> _id.

    The insert-if-absent is a single upsert with $setOnInsert, so existing
    authors are never modified even when their fields differ from the
    dataset. Without a unique index on name, two concurrent runs can still
    both insert.
    """
    author_ids: dict[str, ObjectId] = {}

    for author in authors:
        new_id = ObjectId()
        try:
            result = collection.update_one(
                {"name": author.name},
                {"$setOnInsert": {"_id": new_id, **author.to_document()}},
                upsert=True,
            )
            if result.upserted_id is not None:
                author_ids[author.name] = result.upserted_id
                report.record(Stage.AUTHORS, author.name, ItemStatus.CREATED)
                logger.info(f"Created new author: {author.name}")
                continue

            existing = collection.find_one({"name": author.name}, {"_id": 1})
        except PyMongoError as e:
            report.record(Stage.AUTHORS, author.name, ItemStatus.FAILED, str(e))
            logger.warning(f"Failed to ensure author {author.name}: {e}")
            continue

        if existing is None:
            report.record(
                Stage.AUTHORS, author.name, ItemStatus.FAILED, "author vanished after upsert"
            )
            continue

        author_ids[author.name] = existing["_id"]
        report.record(Stage.AUTHORS, author.name, ItemStatus.SKIPPED, ALREADY_EXISTS)
        logger.info(f"Author already exists: {author.name}")

    return author_ids


def build_book_document(
    book: BookFixture,
    author_id: ObjectId,
    defaults: BookDefaults,
) -> dict[str, Any]:
    """Full create payload with a denormalized author summary."""
    return {
        "_id": book.isbn,
        "title": book.title,
        "year": book.year,
        "authors": [{"_id": str(author_id), "name": book.author}],
        "synopsis": book.synopsis,
        "publisher": book.publisher,
        "pages": book.pages,
        "language": defaults.language,
        "totalInventory": defaults.total_inventory,
        "available": defaults.available,
        "attributes": [],
        "reviews": [],
    }


def ensure_books(
    api: LibraryApiClient,
    token: str,
    books: list[BookFixture],
    author_ids: dict[str, ObjectId],
    defaults: BookDefaults,
    report: RunReport,
) -> list[ResolvedBook]:
    """Create books missing by ISBN.

    A book whose author did not resolve is failed rather than created
    with a null author reference.
    """
    resolved: list[ResolvedBook] = []

    for book in books:
        if api.get_book(book.isbn).ok:
            resolved.append(ResolvedBook(isbn=book.isbn, title=book.title))
            report.record(Stage.BOOKS, book.title, ItemStatus.SKIPPED, ALREADY_EXISTS)
            logger.info(f"Book already exists: {book.title}")
            continue

        author_id = author_ids.get(book.author)
        if author_id is None:
            reason = f"author not resolved: {book.author}"
            report.record(Stage.BOOKS, book.title, ItemStatus.FAILED, reason)
            logger.warning(f"Skipping book {book.title}: {reason}")
            continue

        document = build_book_document(book, author_id, defaults)
        result = api.create_book(document, token)
        if not result.ok:
            report.record(Stage.BOOKS, book.title, ItemStatus.FAILED, result.error)
            continue

        resolved.append(ResolvedBook(isbn=book.isbn, title=book.title, document=document))
        report.record(Stage.BOOKS, book.title, ItemStatus.CREATED)
        logger.info(f"Created new book: {book.title}")

    return resolved


def ensure_reviews(
    api: LibraryApiClient,
    books: list[ResolvedBook],
    users: list[SeedUser],
    dataset: SeedDataset,
    report: RunReport,
) -> None:
    """Add reviews to books that have none.

    A book with any existing review is left alone. Reviewers rotate
    through users by index.
    """
    for book in books:
        existing = api.list_reviews(book.isbn)
        if existing.ok and isinstance(existing.data, list) and existing.data:
            report.record(
                Stage.REVIEWS,
                book.title,
                ItemStatus.SKIPPED,
                f"{len(existing.data)} reviews already exist",
            )
            logger.info(f"Reviews already exist for {book.title} ({len(existing.data)} reviews)")
            continue

        if not users:
            report.record(Stage.REVIEWS, book.title, ItemStatus.FAILED, "no user credentials")
            continue

        for i, review in enumerate(dataset.reviews_for(book.title)):
            user = users[i % len(users)]
            key = f"{book.title} by {user.name}"
            result = api.create_review(book.isbn, review.to_payload(), user.token)
            if result.ok:
                report.record(Stage.REVIEWS, key, ItemStatus.CREATED)
                logger.info(f"Created review for {key}")
            else:
                report.record(Stage.REVIEWS, key, ItemStatus.FAILED, result.error)


def ensure_reservations(
    api: LibraryApiClient,
    books: list[ResolvedBook],
    users: list[SeedUser],
    pairs: list[ReservationFixture],
    report: RunReport,
) -> None:
    """Reserve books for users; a rejection means it already exists."""
    for pair in pairs:
        if pair.book_index >= len(books) or pair.user_index >= len(users):
            report.record(
                Stage.RESERVATIONS,
                f"book #{pair.book_index} by user #{pair.user_index}",
                ItemStatus.SKIPPED,
                "index out of range",
            )
            continue

        book = books[pair.book_index]
        user = users[pair.user_index]
        key = f"{book.title} by {user.name}"

        result = api.create_reservation(book.isbn, user.token)
        if result.ok:
            report.record(Stage.RESERVATIONS, key, ItemStatus.CREATED)
            logger.info(f"Created reservation for {key}")
        else:
            report.record(
                Stage.RESERVATIONS,
                key,
                ItemStatus.SKIPPED,
                result.error or "reservation may already exist",
            )
            logger.info(f"Reservation may already exist for {key}")


def run_pipeline(
    api: LibraryApiClient,
    authors_collection: Collection,
    dataset: SeedDataset,
    on_stage: Callable[[Stage], None] | None = None,
) -> PopulateResult:
    """Execute the full populate pipeline.

    Args:
        api: Library API client
        authors_collection: Store collection holding authors
        dataset: Validated seed dataset
        on_stage: Called after each stage completes (progress reporting)

    Raises:
        AdminCredentialError: If the admin login yields no token. No
            later stage runs.
    """
    token = acquire_admin_token(api, dataset.admin_user)
    if not token:
        raise AdminCredentialError(f"Failed to get admin token for {dataset.admin_user}")

    def done(stage: Stage) -> None:
        if on_stage is not None:
            on_stage(stage)

    result = PopulateResult()
    report = result.report

    result.users = ensure_users(api, dataset.users, report)
    done(Stage.USERS)

    result.author_ids = ensure_authors(authors_collection, dataset.authors, report)
    done(Stage.AUTHORS)

    result.books = ensure_books(
        api, token, dataset.books, result.author_ids, dataset.book_defaults, report
    )
    done(Stage.BOOKS)

    ensure_reviews(api, result.books, result.users, dataset, report)
    done(Stage.REVIEWS)

    ensure_reservations(api, result.books, result.users, dataset.reservations, report)
    done(Stage.RESERVATIONS)

    return result
