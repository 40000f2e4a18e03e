"""Per-item outcomes and the aggregated run report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Stage(str, Enum):
    """Populate pipeline stages, in execution order."""

    USERS = "users"
    AUTHORS = "authors"
    BOOKS = "books"
    REVIEWS = "reviews"
    RESERVATIONS = "reservations"


class ItemStatus(str, Enum):
    """Outcome of ensuring a single item."""

    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ItemResult:
    """Result of ensuring one record.

    Fields:
        stage: Pipeline stage that produced the result
        key: Human-readable identity (user name, author name, book title)
        status: CREATED, SKIPPED or FAILED
        reason: Why the item was skipped or failed (empty when created)
    """

    stage: Stage
    key: str
    status: ItemStatus
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "stage": self.stage.value,
            "key": self.key,
            "status": self.status.value,
            "reason": self.reason,
        }


@dataclass
class RunReport:
    """All item results from one populate run."""

    items: list[ItemResult] = field(default_factory=list)

    def record(
        self,
        stage: Stage,
        key: str,
        status: ItemStatus,
        reason: str = "",
    ) -> ItemResult:
        result = ItemResult(stage=stage, key=key, status=status, reason=reason)
        self.items.append(result)
        return result

    def for_stage(self, stage: Stage) -> list[ItemResult]:
        return [r for r in self.items if r.stage == stage]

    def count(self, stage: Stage, status: ItemStatus) -> int:
        """Count results for a stage with the given status."""
        return sum(1 for r in self.items if r.stage == stage and r.status == status)

    @property
    def created(self) -> list[ItemResult]:
        return [r for r in self.items if r.status == ItemStatus.CREATED]

    @property
    def failures(self) -> list[ItemResult]:
        """Get all failed items."""
        return [r for r in self.items if r.status == ItemStatus.FAILED]

    @property
    def has_failures(self) -> bool:
        return any(r.status == ItemStatus.FAILED for r in self.items)
