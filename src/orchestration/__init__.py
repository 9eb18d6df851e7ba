"""Traversal orchestration for the smart cacher.

Usage:
    from src.orchestration import build_traversal_engine

    async with OriginClient(config.origin) as origin:
        report = await build_traversal_engine(config, origin).run()
"""

from pathlib import Path

from src.models.config import AppConfig
from src.orchestration.governor import TimeBudgetGovernor
from src.orchestration.traversal import (
    StepResult,
    TraversalEngine,
    TraversalPhase,
    TraversalState,
    advance,
)
from src.services.catalog_service import CatalogService
from src.services.checkpoint_service import CheckpointService
from src.services.origin_client import OriginClient
from src.services.state_store import FileStateStore, StateStore
from src.services.warmup_service import WarmupService


def build_traversal_engine(
    config: AppConfig,
    origin: OriginClient,
    store: StateStore | None = None,
) -> TraversalEngine:
    """Wire a TraversalEngine from configuration.

    Args:
        config: Service configuration
        origin: Open origin client, shared by every page fetch of the run
        store: State store override (defaults to the configured state dir)
    """
    if store is None:
        store = FileStateStore(Path(config.checkpoint.state_dir))

    return TraversalEngine(
        catalog_service=CatalogService(config.warmup),
        checkpoint_service=CheckpointService(config.checkpoint, store),
        warmup_service=WarmupService(config.warmup, config.origin, origin),
        governor=TimeBudgetGovernor(config.warmup.time_budget_seconds),
    )


__all__ = [
    "StepResult",
    "TimeBudgetGovernor",
    "TraversalEngine",
    "TraversalPhase",
    "TraversalState",
    "advance",
    "build_traversal_engine",
]
