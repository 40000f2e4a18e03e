"""HTTP client for the library application's REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Constants
DEFAULT_BASE_URL = "http://localhost:5001"
DEFAULT_TIMEOUT = 10.0


@dataclass
class ApiResult:
    """Outcome of one API call.

    Transport errors and non-2xx responses are both represented here
    rather than raised, so a failed item never aborts a batch.
    """

    ok: bool
    status_code: int | None = None
    data: Any = None
    error: str = ""

    @property
    def conflict(self) -> bool:
        return self.status_code == 409


class LibraryApiClient:
    """Synchronous client for the library API.

    Each call is stateless; authentication is passed per call as a bearer
    token so one client can act as several users in turn.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize API client.

        Args:
            base_url: API root, e.g. http://localhost:5001
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> LibraryApiClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def call(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        token: str | None = None,
    ) -> ApiResult:
        """Issue a request and decode the JSON response.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL
            data: JSON body, sent only when not None
            token: Bearer token for authenticated endpoints

        Returns:
            ApiResult; ok is True only for a 2xx response
        """
        headers = {"Authorization": f"Bearer {token}"} if token else None

        try:
            response = self._client.request(method, endpoint, json=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"API call failed for {method} {endpoint}: {e}")
            return ApiResult(ok=False, error=str(e) or type(e).__name__)

        try:
            body = response.json()
        except ValueError:
            body = response.text or None

        if not response.is_success:
            logger.warning(f"Error {response.status_code} for {method} {endpoint}: {body}")
            return ApiResult(
                ok=False,
                status_code=response.status_code,
                data=body,
                error=_error_message(response.status_code, body),
            )

        return ApiResult(ok=True, status_code=response.status_code, data=body)

    def login(self, name: str) -> ApiResult:
        """Log in as a user, creating the account if it does not exist."""
        return self.call("GET", f"/users/login/{name}")

    def get_book(self, isbn: str) -> ApiResult:
        return self.call("GET", f"/books/{isbn}")

    def create_book(self, book: dict[str, Any], token: str) -> ApiResult:
        return self.call("POST", "/books", book, token)

    def list_reviews(self, isbn: str) -> ApiResult:
        return self.call("GET", f"/books/{isbn}/reviews")

    def create_review(self, isbn: str, review: dict[str, Any], token: str) -> ApiResult:
        return self.call("POST", f"/books/{isbn}/reviews", review, token)

    def create_reservation(self, isbn: str, token: str) -> ApiResult:
        return self.call("POST", f"/reservations/{isbn}", {}, token)


def _error_message(status_code: int, body: Any) -> str:
    """Best-effort human-readable error from a failed response."""
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return f"HTTP {status_code}: {body[key]}"
    if body:
        return f"HTTP {status_code}: {body}"
    return f"HTTP {status_code}"
