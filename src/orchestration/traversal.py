"""Resumable, time-bounded traversal of the manga catalog.

The walk over manga -> chapter -> page is an explicit state machine. The
pure ``advance`` function maps a state (plus, for page scanning, the
outcome of one batch round) to the next state; ``TraversalEngine`` drives
it, performs the batch I/O and decides when to stop and persist.

Transitions:
    SCANNING_MANGA(m, c, p)
        m past the end of the catalog   -> PASS_COMPLETE(0, 1, 0)
        otherwise                        -> SCANNING_CHAPTER(m, c, p)
    SCANNING_CHAPTER(m, c, p)
        c > chapters of manga m          -> SCANNING_MANGA(m + 1, 1, 0)
        otherwise                        -> SCANNING_PAGE(m, c, p)
    SCANNING_PAGE(m, c, p) + batch
        whole batch warmed               -> SCANNING_PAGE(m, c, p + size)
        first miss at q                  -> SCANNING_CHAPTER(m, c + 1, 0)

A resumed chapter and page offset therefore only apply to the first manga
and chapter touched by a run; every later chapter starts at page 0 and
every later manga at chapter 1.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import structlog

from src.models.catalog import CatalogEntry
from src.models.checkpoint import Checkpoint
from src.models.warmup import BatchOutcome, TraversalOutcome, TraversalReport
from src.observability.metrics import (
    CHECKPOINT_POSITION,
    TRAVERSAL_ROUNDS,
    TRAVERSAL_RUNS,
)
from src.orchestration.governor import TimeBudgetGovernor
from src.services.catalog_service import CatalogService
from src.services.checkpoint_service import CheckpointService
from src.services.warmup_service import WarmupService

logger = structlog.get_logger()


class TraversalPhase(str, Enum):
    SCANNING_MANGA = "scanning_manga"
    SCANNING_CHAPTER = "scanning_chapter"
    SCANNING_PAGE = "scanning_page"
    PASS_COMPLETE = "pass_complete"


@dataclass(frozen=True)
class TraversalState:
    phase: TraversalPhase
    position: Checkpoint

    @classmethod
    def resume(cls, checkpoint: Checkpoint) -> "TraversalState":
        return cls(TraversalPhase.SCANNING_MANGA, checkpoint)


@dataclass(frozen=True)
class StepResult:
    """Next state, plus the position reached by a batch round if one ran.

    ``round_position`` is what gets persisted if the run halts right after
    this step. It differs from ``state.position`` when a round ends a
    chapter: the round stopped at the missing page of chapter c, while the
    next state already points at chapter c + 1.
    """

    state: TraversalState
    round_position: Optional[Checkpoint] = None

    @property
    def ran_round(self) -> bool:
        return self.round_position is not None


def advance(
    state: TraversalState,
    catalog: List[CatalogEntry],
    outcome: Optional[BatchOutcome] = None,
) -> StepResult:
    """
    Compute the transition out of ``state``.

    Args:
        state: Current traversal state
        catalog: Catalog for this run
        outcome: Result of the batch round, required in SCANNING_PAGE

    Returns:
        StepResult with the next state

    Raises:
        ValueError: SCANNING_PAGE without an outcome, or stepping past
            PASS_COMPLETE
    """
    pos = state.position
    m, c, p = pos.manga_index, pos.chapter_index, pos.page_index

    if state.phase is TraversalPhase.SCANNING_MANGA:
        if m >= len(catalog):
            return StepResult(
                TraversalState(TraversalPhase.PASS_COMPLETE, Checkpoint.initial())
            )
        return StepResult(TraversalState(TraversalPhase.SCANNING_CHAPTER, pos))

    if state.phase is TraversalPhase.SCANNING_CHAPTER:
        if c > catalog[m].chapters:
            return StepResult(
                TraversalState(
                    TraversalPhase.SCANNING_MANGA,
                    Checkpoint(manga_index=m + 1, chapter_index=1, page_index=0),
                )
            )
        return StepResult(TraversalState(TraversalPhase.SCANNING_PAGE, pos))

    if state.phase is TraversalPhase.SCANNING_PAGE:
        if outcome is None:
            raise ValueError("SCANNING_PAGE requires a batch outcome")

        reached = Checkpoint(
            manga_index=m, chapter_index=c, page_index=outcome.next_offset()
        )
        if outcome.chapter_exhausted:
            next_chapter = Checkpoint(manga_index=m, chapter_index=c + 1, page_index=0)
            return StepResult(
                TraversalState(TraversalPhase.SCANNING_CHAPTER, next_chapter),
                round_position=reached,
            )
        return StepResult(
            TraversalState(TraversalPhase.SCANNING_PAGE, reached),
            round_position=reached,
        )

    raise ValueError("Traversal already complete")


class TraversalEngine:
    """
    Walks the catalog from the saved checkpoint, warming pages batch by
    batch until the catalog is exhausted or the time budget runs out.

    The checkpoint is read once at the start and written at most once at
    the end. Concurrent runs are not coordinated here; the scheduler runs
    at most one instance at a time.
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        checkpoint_service: CheckpointService,
        warmup_service: WarmupService,
        governor: TimeBudgetGovernor,
    ):
        self.catalog_service = catalog_service
        self.checkpoint_service = checkpoint_service
        self.warmup_service = warmup_service
        self.governor = governor

    async def run(self) -> TraversalReport:
        """
        Execute one time-sliced traversal run.

        Returns:
            TraversalReport describing how the run ended
        """
        self.governor.start()

        catalog = await self.catalog_service.try_fetch()
        if catalog is None:
            TRAVERSAL_RUNS.labels(outcome=TraversalOutcome.CATALOG_UNAVAILABLE.value).inc()
            return TraversalReport(
                outcome=TraversalOutcome.CATALOG_UNAVAILABLE,
                elapsed_seconds=self.governor.elapsed(),
            )

        start = self.checkpoint_service.load()
        report = TraversalReport(
            outcome=TraversalOutcome.PASS_COMPLETE,
            started_at=start,
            catalog_size=len(catalog),
        )

        logger.info(
            "traversal_started",
            catalog_size=len(catalog),
            manga_index=start.manga_index,
            chapter_index=start.chapter_index,
            page_index=start.page_index,
        )

        state = TraversalState.resume(start)

        while state.phase is not TraversalPhase.PASS_COMPLETE:
            outcome = None
            if state.phase is TraversalPhase.SCANNING_PAGE:
                entry = catalog[state.position.manga_index]
                outcome = await self.warmup_service.warm_batch(
                    entry.name,
                    state.position.chapter_index,
                    state.position.page_index,
                )

            step = advance(state, catalog, outcome)
            state = step.state

            if not step.ran_round:
                continue

            assert outcome is not None and step.round_position is not None
            report.rounds += 1
            report.pages_warmed += outcome.warmed
            TRAVERSAL_ROUNDS.inc()
            if outcome.chapter_exhausted:
                report.chapters_finished += 1
                logger.info(
                    "chapter_finished",
                    manga=catalog[step.round_position.manga_index].name,
                    chapter=step.round_position.chapter_index,
                    pages=step.round_position.page_index,
                )

            if self.governor.expired():
                return self._finish(report, TraversalOutcome.HALTED, step.round_position)

        return self._finish(report, TraversalOutcome.PASS_COMPLETE, Checkpoint.initial())

    def _finish(
        self,
        report: TraversalReport,
        outcome: TraversalOutcome,
        checkpoint: Checkpoint,
    ) -> TraversalReport:
        self.checkpoint_service.save(checkpoint)

        report.outcome = outcome
        report.saved = checkpoint
        report.elapsed_seconds = self.governor.elapsed()

        CHECKPOINT_POSITION.labels(level="manga").set(checkpoint.manga_index)
        CHECKPOINT_POSITION.labels(level="chapter").set(checkpoint.chapter_index)
        CHECKPOINT_POSITION.labels(level="page").set(checkpoint.page_index)
        TRAVERSAL_RUNS.labels(outcome=outcome.value).inc()

        logger.info(
            "traversal_finished",
            outcome=outcome.value,
            rounds=report.rounds,
            pages_warmed=report.pages_warmed,
            chapters_finished=report.chapters_finished,
            elapsed_seconds=round(report.elapsed_seconds, 2),
            manga_index=checkpoint.manga_index,
            chapter_index=checkpoint.chapter_index,
            page_index=checkpoint.page_index,
        )
        return report
