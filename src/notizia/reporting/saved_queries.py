"""
Named query presets persisted in a JSON file.

The file holds a list of entries, newest first:

    [{"name": "Panik Coaching", "query": {...}, "saved_at": "2024-05-01T10:00:00"}]
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .filters import Query

logger = logging.getLogger(__name__)


@dataclass
class SavedQuery:
    name: str
    query: Query
    saved_at: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "query": self.query.to_dict(),
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedQuery":
        return cls(
            name=data["name"],
            query=Query.from_dict(data.get("query") or {}),
            saved_at=data.get("saved_at", ""),
        )


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Saved query name must not be empty")
    return cleaned


class SavedQueryStore:
    """
    Store for saved report queries.

    Every call reads the file, so several stores on the same path see
    each other's changes. A missing file is an empty store.

    Example:
        store = SavedQueryStore("data/saved_queries.json")
        store.save("Panik", Query(problem="panic"))
        query = store.get("Panik")
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> list[SavedQuery]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Saved query file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise ValueError(f"Saved query file {self.path} must contain a list")
        return [SavedQuery.from_dict(entry) for entry in data]

    def _write(self, entries: list[SavedQuery]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def list(self) -> list[SavedQuery]:
        """All saved queries, newest first."""
        return self._read()

    def get(self, name: str) -> Optional[Query]:
        """Return the query saved under a name, or None."""
        name = (name or "").strip()
        for entry in self._read():
            if entry.name == name:
                return entry.query
        return None

    def save(self, name: str, query: Query) -> SavedQuery:
        """
        Save a query under a name, replacing any entry with the same name.

        The new entry goes to the front of the list.

        Raises:
            ValueError: If the name is empty after trimming
        """
        name = _clean_name(name)
        entry = SavedQuery(
            name=name,
            query=query,
            saved_at=datetime.now().isoformat(timespec="seconds"),
        )
        entries = [e for e in self._read() if e.name != name]
        self._write([entry] + entries)
        logger.info(f"Saved query '{name}' to {self.path}")
        return entry

    def delete(self, name: str) -> bool:
        """
        Delete a saved query.

        Returns:
            True if an entry was removed
        """
        name = (name or "").strip()
        entries = self._read()
        remaining = [e for e in entries if e.name != name]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        logger.info(f"Deleted saved query '{name}'")
        return True
