"""Declarative seed dataset: loading, validation and typed access.

The reference data (users, authors, books, review templates, reservation
pairs) lives in data/library_seed.json so the seeding logic can be reused
with a different dataset. The file is validated against
schemas/library_seed.schema.json before anything is written.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.seeding.errors import DatasetError
from src.validators.validate import load_schema, validate_data

logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path(__file__).parent.parent.parent / "data" / "library_seed.json"
DEFAULT_SCHEMA_PATH = Path(__file__).parent.parent.parent / "schemas" / "library_seed.schema.json"


@dataclass
class AuthorFixture:
    """Author record as inserted into the authors collection."""

    name: str
    sanitized_name: str
    aliases: list[str] = field(default_factory=list)
    bio: str = ""
    books: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        """Render the store document, without an _id."""
        return {
            "name": self.name,
            "sanitizedName": self.sanitized_name,
            "aliases": list(self.aliases),
            "bio": self.bio,
            "books": list(self.books),
        }


@dataclass
class BookFixture:
    """Book record keyed by ISBN, referencing its author by name."""

    isbn: str
    title: str
    year: int
    author: str
    synopsis: str
    publisher: str
    pages: int


@dataclass
class ReviewFixture:
    text: str
    rating: int

    def to_payload(self) -> dict[str, Any]:
        return {"text": self.text, "rating": self.rating}


@dataclass
class ReservationFixture:
    """Index pair into the resolved books and users lists."""

    book_index: int
    user_index: int


@dataclass
class BookDefaults:
    language: str = "English"
    total_inventory: int = 5
    available: int = 5


@dataclass
class SeedDataset:
    """Complete seed dataset."""

    admin_user: str
    users: list[str]
    authors: list[AuthorFixture]
    books: list[BookFixture]
    book_defaults: BookDefaults
    review_templates: dict[str, list[ReviewFixture]]
    default_reviews: list[ReviewFixture]
    reservations: list[ReservationFixture]

    def reviews_for(self, title: str) -> list[ReviewFixture]:
        """Curated reviews for a title, falling back to the generic set."""
        return self.review_templates.get(title) or self.default_reviews


def _parse_reviews(raw: list[dict[str, Any]]) -> list[ReviewFixture]:
    return [ReviewFixture(text=r["text"], rating=r["rating"]) for r in raw]


def parse_dataset(data: dict[str, Any]) -> SeedDataset:
    """Build a SeedDataset from schema-valid raw data.

    Raises:
        DatasetError: If a book references an author missing from the dataset.
    """
    authors = [
        AuthorFixture(
            name=a["name"],
            sanitized_name=a["sanitizedName"],
            aliases=a["aliases"],
            bio=a["bio"],
            books=a["books"],
        )
        for a in data["authors"]
    ]
    books = [
        BookFixture(
            isbn=b["isbn"],
            title=b["title"],
            year=b["year"],
            author=b["author"],
            synopsis=b["synopsis"],
            publisher=b["publisher"],
            pages=b["pages"],
        )
        for b in data["books"]
    ]

    author_names = {a.name for a in authors}
    unknown = sorted({b.author for b in books if b.author not in author_names})
    if unknown:
        raise DatasetError(f"Books reference unknown authors: {', '.join(unknown)}")

    defaults = data["book_defaults"]
    return SeedDataset(
        admin_user=data["admin_user"],
        users=list(data["users"]),
        authors=authors,
        books=books,
        book_defaults=BookDefaults(
            language=defaults["language"],
            total_inventory=defaults["totalInventory"],
            available=defaults["available"],
        ),
        review_templates={
            title: _parse_reviews(reviews)
            for title, reviews in data["review_templates"].items()
        },
        default_reviews=_parse_reviews(data["default_reviews"]),
        reservations=[
            ReservationFixture(book_index=r["book_index"], user_index=r["user_index"])
            for r in data["reservations"]
        ],
    )


def load_dataset(
    path: Path = DEFAULT_DATASET_PATH,
    schema_path: Path = DEFAULT_SCHEMA_PATH,
) -> SeedDataset:
    """Load, validate and parse a seed dataset file.

    Raises:
        DatasetError: If the file is missing, not JSON, or schema-invalid.
    """
    if not path.exists():
        raise DatasetError(f"Dataset file does not exist: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DatasetError(f"Invalid JSON in dataset {path}: {e}") from e

    errors = validate_data(data, load_schema(schema_path))
    if errors:
        raise DatasetError(f"Dataset {path} failed validation: " + "; ".join(errors))

    dataset = parse_dataset(data)
    logger.debug(
        f"Loaded dataset {path.name}: {len(dataset.users)} users, "
        f"{len(dataset.authors)} authors, {len(dataset.books)} books"
    )
    return dataset
