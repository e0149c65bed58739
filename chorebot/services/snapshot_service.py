# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: State snapshots.

``serialize`` and ``restore`` are exact inverses over the whole engine
aggregate. ``save`` and ``load`` move that document through the snapshot
store; a failed write is logged, counted and reported to the operator
channel but never rolls back or blocks the in-memory state.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError

from chorebot.core.errors import PersistenceError
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import PENDING_PUNISHMENTS, PENDING_SWAPS, SNAPSHOT_WRITES
from chorebot.models.domain import EngineState
from chorebot.repositories.snapshot_repository import SnapshotRepository
from chorebot.repositories.state_repository import StateRepository
from chorebot.services.operator_client import OperatorAlertClient
from chorebot.services.rotation import clamp_index

logger = get_logger(__name__)


class SnapshotService:
    """Serialization of the engine aggregate and its persistence."""

    def __init__(
        self,
        state_repo: StateRepository,
        snapshot_repo: Optional[SnapshotRepository],
        operator_client: OperatorAlertClient,
    ) -> None:
        self._state = state_repo
        self._store = snapshot_repo
        self._operator = operator_client
        self.last_saved_at: Optional[str] = None
        self._save_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._store is not None

    # ── Serialization ──

    def serialize(self) -> dict[str, Any]:
        with self._state.lock:
            return self._state.state.model_dump(mode="json", by_alias=True)

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Replace the engine state. Raises PersistenceError on a bad document."""
        try:
            state = EngineState.model_validate(snapshot)
        except ValidationError as exc:
            raise PersistenceError(f"Invalid snapshot: {exc.error_count()} error(s)") from exc

        member_ids = [m.id for m in state.rotation.members]
        if len(member_ids) != len(set(member_ids)):
            raise PersistenceError("Invalid snapshot: duplicate member ids")
        state.rotation.current_index = clamp_index(
            state.rotation.current_index, len(state.rotation.members)
        )

        self._state.replace(state)
        PENDING_SWAPS.set(len(state.swap_requests))
        PENDING_PUNISHMENTS.set(
            sum(1 for r in state.punishment_requests.values() if r.is_pending)
        )
        logger.info(
            "State restored: members=%d, swaps=%d, punishments=%d",
            len(state.rotation.members),
            len(state.swap_requests),
            len(state.punishment_requests),
        )

    # ── Persistence ──

    def save(self) -> bool:
        """Write a snapshot. Never raises."""
        if self._store is None:
            return False
        # Serialize and write as one step: snapshots land in the order taken.
        with self._save_lock:
            payload = self.serialize()
            try:
                self._store.save(payload)
            except PersistenceError as exc:
                SNAPSHOT_WRITES.labels(result="failed").inc()
                logger.error("Snapshot write failed: %s", exc.message)
                self._operator.send(f"Snapshot write failed: {exc.message}", severity="error")
                return False
            SNAPSHOT_WRITES.labels(result="ok").inc()
            self.last_saved_at = datetime.now(timezone.utc).isoformat()
        logger.debug("Snapshot written to %s", self._store.path)
        return True

    def load(self) -> bool:
        """Restore from the store. Returns False when there is nothing usable."""
        if self._store is None:
            return False
        try:
            snapshot = self._store.load()
            if snapshot is None:
                logger.info("No snapshot at %s, starting fresh", self._store.path)
                return False
            self.restore(snapshot)
        except PersistenceError as exc:
            logger.error("Snapshot load failed: %s", exc.message)
            self._operator.send(f"Snapshot load failed: {exc.message}", severity="error")
            quarantined = self._store.quarantine()
            if quarantined is not None:
                logger.warning("Unreadable snapshot moved to %s", quarantined)
            else:
                logger.error("Could not move unreadable snapshot %s aside", self._store.path)
            return False
        return True

    async def run_periodic(
        self, interval: float, before_save: Callable[[], Any] | None = None
    ) -> None:
        """Snapshot every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            if before_save is not None:
                try:
                    await asyncio.to_thread(self._locked, before_save)
                except Exception:
                    logger.exception("Periodic maintenance failed")
            await asyncio.to_thread(self.save)

    def _locked(self, fn: Callable[[], Any]) -> Any:
        with self._state.lock:
            return fn()
