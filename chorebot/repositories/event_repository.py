# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Audit event log.
Bounded append-only log of every rotation mutation. In-memory only, it is
not part of the persisted snapshot.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from chorebot.core.config import settings


class EventRepository:
    """In-memory event log (bounded ring buffer)."""

    def __init__(self, max_size: int | None = None) -> None:
        self._events: list[dict[str, Any]] = []
        self._max_size = settings.MAX_EVENT_LOG_SIZE if max_size is None else max_size

    # ── Read ──

    def get_all(
        self,
        event_type: Optional[str] = None,
        actor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        effective_limit = settings.DEFAULT_EVENT_LIMIT if limit is None else limit
        result = list(self._events)
        if event_type:
            result = [e for e in result if e["event_type"] == event_type]
        if actor:
            result = [e for e in result if e["actor"] == actor]
        return result[-effective_limit:] if effective_limit > 0 else []

    def count(self) -> int:
        return len(self._events)

    def count_by_type(self) -> dict[str, int]:
        event_types: dict[str, int] = {}
        for e in self._events:
            et = e["event_type"]
            event_types[et] = event_types.get(et, 0) + 1
        return event_types

    # ── Write ──

    def record(
        self, event_type: str, actor: Optional[str], details: dict[str, Any]
    ) -> dict[str, Any]:
        """Append an event, trimming the oldest entries if over max."""
        event: dict[str, Any] = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "actor": actor,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
        }
        self._events.append(event)
        if len(self._events) > self._max_size:
            del self._events[: len(self._events) - self._max_size]
        return event

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._events.clear()
