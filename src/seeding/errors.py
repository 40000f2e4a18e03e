"""Exceptions raised by the seeding pipeline.

Only fatal conditions are exceptions. Per-item failures (a rejected book,
a failed login) are recorded in the RunReport instead.
"""

from __future__ import annotations


class SeedError(Exception):
    """Base exception for seeding operations."""


class DatasetError(SeedError):
    """Seed dataset is missing, malformed, or fails schema validation."""


class AdminCredentialError(SeedError):
    """Admin login did not produce a bearer token."""


class StoreUnavailableError(SeedError):
    """Document store could not be reached."""
