# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Snapshot file store.
Persists the serialized engine state as one JSON document. Writes go to a
temporary file in the same directory which then replaces the target, so a
crash mid-write never leaves a truncated snapshot behind.
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from chorebot.core.errors import PersistenceError


class SnapshotRepository:
    """JSON snapshot persistence on the local filesystem."""

    def __init__(self, path: str | os.PathLike) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ── Read ──

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> Optional[dict[str, Any]]:
        """Return the stored snapshot, or None if nothing was saved yet."""
        if not self.exists():
            return None
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as exc:
            raise PersistenceError(
                f"Cannot read snapshot {self._path}: {exc}"
            ) from exc

    # ── Write ──

    def save(self, payload: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh, indent=2, ensure_ascii=False)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceError(
                f"Cannot write snapshot {self._path}: {exc}"
            ) from exc

    # ── Bulk / internal ──

    def quarantine(self) -> Optional[Path]:
        """Move an unreadable snapshot aside so the next save cannot clobber it."""
        if not self.exists():
            return None
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = self._path.with_name(f"{self._path.name}.corrupt-{stamp}")
        try:
            os.replace(self._path, target)
        except OSError:
            return None
        return target
