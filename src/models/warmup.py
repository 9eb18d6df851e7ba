"""Data models for warm-up rounds and traversal runs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.models.checkpoint import Checkpoint


@dataclass(frozen=True)
class BatchOutcome:
    """Result of one concurrent group of page warm-ups.

    ``first_missing`` is the absolute page offset of the first page (in offset
    order) that could not be warmed, or None when every page succeeded.
    """

    start: int
    size: int
    first_missing: Optional[int] = None
    warmed: int = 0

    @property
    def chapter_exhausted(self) -> bool:
        return self.first_missing is not None

    def next_offset(self) -> int:
        if self.first_missing is not None:
            return self.first_missing
        return self.start + self.size


class TraversalOutcome(str, Enum):
    """How a traversal run ended"""

    CATALOG_UNAVAILABLE = "catalog_unavailable"
    HALTED = "halted"
    PASS_COMPLETE = "pass_complete"


@dataclass
class TraversalReport:
    """Summary of one traversal run"""

    outcome: TraversalOutcome
    started_at: Checkpoint = field(default_factory=Checkpoint.initial)
    saved: Optional[Checkpoint] = None
    rounds: int = 0
    pages_warmed: int = 0
    chapters_finished: int = 0
    elapsed_seconds: float = 0.0
    catalog_size: int = 0

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "started_at": self.started_at.model_dump(by_alias=True),
            "saved": self.saved.model_dump(by_alias=True) if self.saved else None,
            "rounds": self.rounds,
            "pages_warmed": self.pages_warmed,
            "chapters_finished": self.chapters_finished,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "catalog_size": self.catalog_size,
        }
