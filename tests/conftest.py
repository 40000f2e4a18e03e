"""Pytest configuration and fixtures for library-seed.

Provides in-memory stand-ins for the two external systems:
- FakeCollection / FakeDatabase: the subset of pymongo used by the scripts
- FakeLibraryApi: the library REST API, served through httpx.MockTransport
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Generator, Iterator
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from bson import ObjectId

from src.library_api.client import LibraryApiClient
from src.seeding.fixtures import SeedDataset, load_dataset
from src.seeding.results import RunReport

# ============================================================================
# Document Store Fakes
# ============================================================================


class FakeCollection:
    """In-memory collection supporting equality filters."""

    def __init__(self, docs: list[dict[str, Any]] | None = None) -> None:
        self.docs: list[dict[str, Any]] = [dict(d) for d in docs or []]

    @staticmethod
    def _matches(doc: dict[str, Any], query: dict[str, Any] | None) -> bool:
        return all(doc.get(k) == v for k, v in (query or {}).items())

    def count_documents(self, query: dict[str, Any]) -> int:
        return sum(1 for d in self.docs if self._matches(d, query))

    def find(self, query: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
        return iter([dict(d) for d in self.docs if self._matches(d, query)])

    def find_one(
        self,
        query: dict[str, Any] | None = None,
        projection: dict[str, int] | None = None,
    ) -> dict[str, Any] | None:
        for doc in self.docs:
            if self._matches(doc, query):
                if projection:
                    keys = set(projection) | {"_id"}
                    return {k: v for k, v in doc.items() if k in keys}
                return dict(doc)
        return None

    def insert_one(self, doc: dict[str, Any]) -> SimpleNamespace:
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def update_one(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
    ) -> SimpleNamespace:
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1, upserted_id=None)

        if not upsert:
            return SimpleNamespace(matched_count=0, upserted_id=None)

        doc = dict(query)
        doc.update(update.get("$setOnInsert", {}))
        doc.update(update.get("$set", {}))
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(matched_count=0, upserted_id=doc["_id"])


class FakeDatabase:
    """Collections created on first access, like pymongo."""

    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection()
        return self.collections[name]


# ============================================================================
# Library API Fake
# ============================================================================


class FakeLibraryApi:
    """Minimal library API: login-or-create, books, reviews, reservations."""

    def __init__(self) -> None:
        self.tokens: dict[str, str] = {}
        self.books: dict[str, dict[str, Any]] = {}
        self.reviews: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.reservations: set[tuple[str, str]] = set()
        self.failing_logins: set[str] = set()
        self.rejected_books: set[str] = set()
        self.requests: list[tuple[str, str]] = []

    @staticmethod
    def _json(status: int, body: Any) -> httpx.Response:
        return httpx.Response(status, json=body)

    def _user(self, request: httpx.Request) -> str | None:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        return self.tokens.get(header.removeprefix("Bearer "))

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        parts = request.url.path.strip("/").split("/")
        self.requests.append((method, request.url.path))

        if method == "GET" and parts[:2] == ["users", "login"] and len(parts) == 3:
            return self._login(parts[2])
        if parts[0] == "books":
            return self._books(request, parts[1:])
        if parts[0] == "reservations" and method == "POST" and len(parts) == 2:
            return self._reserve(request, parts[1])
        return self._json(404, {"error": "Not found"})

    def _login(self, name: str) -> httpx.Response:
        if name in self.failing_logins:
            return self._json(500, {"error": "login failed"})
        token = f"jwt-{name}"
        self.tokens[token] = name
        return self._json(200, {"jwt": token})

    def _books(self, request: httpx.Request, parts: list[str]) -> httpx.Response:
        method = request.method

        if method == "POST" and not parts:
            if self._user(request) is None:
                return self._json(401, {"error": "Unauthorized"})
            book = json.loads(request.content)
            if book["_id"] in self.rejected_books:
                return self._json(400, {"error": "Invalid book"})
            if book["_id"] in self.books:
                return self._json(409, {"error": "Book already exists"})
            self.books[book["_id"]] = book
            return self._json(201, book)

        isbn = parts[0] if parts else ""
        if isbn not in self.books:
            return self._json(404, {"error": "Book not found"})

        if method == "GET" and len(parts) == 1:
            return self._json(200, self.books[isbn])

        if len(parts) == 2 and parts[1] == "reviews":
            if method == "GET":
                return self._json(200, self.reviews[isbn])
            user = self._user(request)
            if user is None:
                return self._json(401, {"error": "Unauthorized"})
            review = {**json.loads(request.content), "name": user, "bookId": isbn}
            self.reviews[isbn].append(review)
            return self._json(201, review)

        return self._json(404, {"error": "Not found"})

    def _reserve(self, request: httpx.Request, isbn: str) -> httpx.Response:
        user = self._user(request)
        if user is None:
            return self._json(401, {"error": "Unauthorized"})
        if isbn not in self.books:
            return self._json(404, {"error": "Book not found"})
        if (isbn, user) in self.reservations:
            return self._json(409, {"error": "Reservation already exists"})
        self.reservations.add((isbn, user))
        return self._json(201, {"bookId": isbn, "name": user, "recordType": "reservation"})


# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def dataset_path(project_root: Path) -> Path:
    return project_root / "data" / "library_seed.json"


@pytest.fixture
def schema_path(project_root: Path) -> Path:
    return project_root / "schemas" / "library_seed.schema.json"


@pytest.fixture
def raw_dataset(dataset_path: Path) -> dict[str, Any]:
    """The shipped dataset as plain JSON data."""
    with open(dataset_path, encoding="utf-8") as f:
        return json.load(f)


# ============================================================================
# Seeding Fixtures
# ============================================================================


@pytest.fixture
def dataset(dataset_path: Path, schema_path: Path) -> SeedDataset:
    return load_dataset(dataset_path, schema_path)


@pytest.fixture
def fake_api() -> FakeLibraryApi:
    return FakeLibraryApi()


@pytest.fixture
def api(fake_api: FakeLibraryApi) -> Generator[LibraryApiClient, None, None]:
    """LibraryApiClient wired to the in-memory fake."""
    client = LibraryApiClient(
        "http://library.test",
        transport=httpx.MockTransport(fake_api.handle),
    )
    yield client
    client.close()


@pytest.fixture
def admin_token(api: LibraryApiClient, dataset: SeedDataset) -> str:
    """Bearer token for the dataset's admin user, issued by the fake API."""
    return api.login(dataset.admin_user).data["jwt"]


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def report() -> RunReport:
    return RunReport()


# ============================================================================
# Markers
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (deselect with '-m \"not integration\"')",
    )
    config.addinivalue_line(
        "markers",
        "requires_mongo: marks tests requiring a MongoDB connection",
    )
    config.addinivalue_line(
        "markers",
        "requires_api: marks tests requiring the library API",
    )
