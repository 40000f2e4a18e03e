"""Environment-driven configuration for the seeding scripts."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from src.seeding.fixtures import DEFAULT_DATASET_PATH

DEFAULT_DATABASE_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE_NAME = "library"
DEFAULT_API_URL = "http://localhost:5001"
DEFAULT_API_TIMEOUT = 10.0
DEFAULT_MONGO_TIMEOUT_MS = 5000


def load_environment(env_file: Path | None = None) -> None:
    """Load variables from an explicit env file or the nearest .env."""
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()


@dataclass
class StoreConfig:
    """Connection settings for the document store."""

    database_uri: str = DEFAULT_DATABASE_URI
    database_name: str = DEFAULT_DATABASE_NAME
    timeout_ms: int = DEFAULT_MONGO_TIMEOUT_MS

    @classmethod
    def from_env(cls) -> StoreConfig:
        return cls(
            database_uri=os.getenv("DATABASE_URI", DEFAULT_DATABASE_URI),
            database_name=os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME),
            timeout_ms=int(os.getenv("MONGO_TIMEOUT_MS", str(DEFAULT_MONGO_TIMEOUT_MS))),
        )


@dataclass
class PopulateConfig:
    """Configuration for a populate run."""

    store: StoreConfig = field(default_factory=StoreConfig)
    api_url: str = DEFAULT_API_URL
    api_timeout: float = DEFAULT_API_TIMEOUT
    dataset_path: Path = field(default_factory=lambda: DEFAULT_DATASET_PATH)
    strict: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls, **overrides: object) -> PopulateConfig:
        """Build from environment variables; non-None overrides win."""
        config = cls(
            store=StoreConfig.from_env(),
            api_url=os.getenv("LIBRARY_API_URL", DEFAULT_API_URL),
            api_timeout=float(os.getenv("LIBRARY_API_TIMEOUT", str(DEFAULT_API_TIMEOUT))),
        )
        for name, value in overrides.items():
            if value is not None:
                setattr(config, name, value)
        return config


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """DEBUG when verbose, otherwise LOG_LEVEL (default INFO)."""
    level = logging.DEBUG if verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
