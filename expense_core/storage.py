"""Key-value storage backends holding serialised expense collections."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from .exceptions import PersistenceError


class FileStorage:
    """File-based slot storage with crash-safe writes.

    Each slot maps to ``<base_path>/<slot>.json``.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, slot: str) -> Path:
        return self._base_path / f"{slot}.json"

    def read(self, slot: str) -> Optional[str]:
        path = self._path_for(slot)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

    def write(self, slot: str, payload: str) -> None:
        path = self._path_for(slot)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc


class MemoryStorage:
    """In-process slot storage with an optional size quota."""

    def __init__(self, capacity: Optional[int] = None) -> None:
        self._slots: Dict[str, str] = {}
        self._capacity = capacity

    def read(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def write(self, slot: str, payload: str) -> None:
        if self._capacity is not None:
            used = sum(len(value) for key, value in self._slots.items() if key != slot)
            if used + len(payload) > self._capacity:
                raise PersistenceError(
                    f"Storage quota of {self._capacity} characters exceeded writing '{slot}'"
                )
        self._slots[slot] = payload
