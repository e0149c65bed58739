# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Engine state ownership.
Holds the one authoritative EngineState and the lock that serializes
every command against it. NO business rules here.
"""

import threading

from chorebot.models.domain import EngineState


class StateRepository:
    """In-memory owner of the engine aggregate."""

    def __init__(self, state: EngineState | None = None) -> None:
        self._state = state or EngineState()
        self._lock = threading.RLock()

    # ── Read ──

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        """Held for the full duration of a command or a snapshot dump."""
        return self._lock

    # ── Write ──

    def replace(self, state: EngineState) -> None:
        with self._lock:
            self._state = state

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._state = EngineState()
