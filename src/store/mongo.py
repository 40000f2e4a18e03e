"""MongoDB connection helpers shared by the populate and verify scripts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from src.seeding.config import StoreConfig
from src.seeding.errors import StoreUnavailableError

if TYPE_CHECKING:
    from pymongo.database import Database

logger = logging.getLogger(__name__)

BOOKS = "books"
AUTHORS = "authors"
USERS = "users"
REVIEWS = "reviews"
ISSUE_DETAILS = "issueDetails"

# Verification order
COLLECTIONS = (BOOKS, AUTHORS, USERS, REVIEWS, ISSUE_DETAILS)


def get_mongo_client(config: StoreConfig) -> MongoClient:
    """Create a MongoDB client. One client per script invocation."""
    return MongoClient(config.database_uri, serverSelectionTimeoutMS=config.timeout_ms)


def ping(client: MongoClient) -> None:
    """Force server selection so an unreachable store fails fast.

    Raises:
        StoreUnavailableError: If the server does not answer.
    """
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        raise StoreUnavailableError(f"Cannot reach MongoDB: {e}") from e
    logger.debug("MongoDB ping succeeded")


def get_database(client: MongoClient, config: StoreConfig) -> Database:
    return client[config.database_name]
