"""
Checkpoint service for the resumable catalog traversal.

Reads the last saved position once at the start of a run and writes it at
most once at the end. A missing or unreadable record always loads as the
initial position so a bad write can never wedge the cacher.
"""

import json
from typing import Optional

import structlog
from pydantic import ValidationError

from src.models.checkpoint import CheckpointConfig, Checkpoint
from src.services.state_store import StateStore
from src.utils.exceptions import StateStoreError

logger = structlog.get_logger()


class CheckpointService:
    """
    Load and persist the traversal checkpoint in a key-value state store.
    """

    def __init__(self, config: CheckpointConfig, store: StateStore):
        """
        Initialize checkpoint service.

        Args:
            config: Checkpoint configuration
            store: Backing key-value store
        """
        self.config = config
        self.store = store
        self.key = config.state_key

        if not config.enabled:
            logger.info("checkpoint_service_disabled")

    def load(self) -> Checkpoint:
        """
        Load the saved checkpoint.

        Returns:
            Saved checkpoint, or the initial position if none is stored or
            the stored payload is corrupt
        """
        if not self.config.enabled:
            return Checkpoint.initial()

        try:
            raw = self.store.get(self.key)
        except StateStoreError as e:
            logger.error("checkpoint_load_error", key=self.key, error=str(e))
            return Checkpoint.initial()

        if raw is None:
            logger.debug("no_checkpoint_found", key=self.key)
            return Checkpoint.initial()

        checkpoint = self.parse(raw)
        if checkpoint is None:
            logger.warning("checkpoint_corrupt", key=self.key, raw=raw[:200])
            return Checkpoint.initial()

        logger.info(
            "checkpoint_loaded",
            key=self.key,
            manga_index=checkpoint.manga_index,
            chapter_index=checkpoint.chapter_index,
            page_index=checkpoint.page_index,
        )
        return checkpoint

    @staticmethod
    def parse(raw: str) -> Optional[Checkpoint]:
        """Parse a stored ``{mIdx, cIdx, pIdx}`` record, None if invalid"""
        try:
            data = json.loads(raw)
        except (ValueError, TypeError):
            return None

        if not isinstance(data, dict):
            return None

        try:
            return Checkpoint.model_validate(data)
        except ValidationError:
            return None

    def save(self, checkpoint: Checkpoint) -> bool:
        """
        Persist checkpoint.

        Args:
            checkpoint: Position to resume from on the next run

        Returns:
            True if saved successfully
        """
        if not self.config.enabled:
            return True

        try:
            self.store.put(self.key, checkpoint.to_json())
        except StateStoreError as e:
            logger.error("checkpoint_save_error", key=self.key, error=str(e))
            return False

        logger.info(
            "checkpoint_saved",
            key=self.key,
            manga_index=checkpoint.manga_index,
            chapter_index=checkpoint.chapter_index,
            page_index=checkpoint.page_index,
        )
        return True

    def reset(self) -> bool:
        """
        Reset to the start of a new pass.

        Returns:
            True if saved successfully
        """
        return self.save(Checkpoint.initial())
