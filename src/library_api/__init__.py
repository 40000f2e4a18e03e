"""Library API client - REST access to the library application."""

from .client import ApiResult, LibraryApiClient

__all__ = [
    "ApiResult",
    "LibraryApiClient",
]
