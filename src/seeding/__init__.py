"""Idempotent seeding of the library application's reference data."""

from .errors import AdminCredentialError, DatasetError, SeedError, StoreUnavailableError
from .fixtures import SeedDataset, load_dataset
from .pipeline import PopulateResult, ResolvedBook, SeedUser, run_pipeline
from .results import ItemResult, ItemStatus, RunReport, Stage

__all__ = [
    "AdminCredentialError",
    "DatasetError",
    "SeedError",
    "StoreUnavailableError",
    "SeedDataset",
    "load_dataset",
    "PopulateResult",
    "ResolvedBook",
    "SeedUser",
    "run_pipeline",
    "ItemResult",
    "ItemStatus",
    "RunReport",
    "Stage",
]
