"""In-process store used for dry runs and deterministic tests."""
from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from studioflow.storage.tables import TABLES

logger = logging.getLogger(__name__)


class MemoryStore:
    """Keeps table rows and document blobs in dictionaries.

    Rows come back in insertion order, which plays the role of the hosted
    store's default ``created_at`` ordering.
    """

    def __init__(self, bucket: str = "couple-documents") -> None:
        self.bucket = bucket
        self.tables: Dict[str, List[Dict[str, Any]]] = {table: [] for table in TABLES}
        self.blobs: Dict[str, bytes] = {}

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        if table not in self.tables:
            raise KeyError(f"Unknown table {table!r}")
        return self.tables[table]

    def select(self, table: str, **equals: Any) -> List[Dict[str, Any]]:
        rows = [row for row in self._rows(table) if all(row.get(key) == value for key, value in equals.items())]
        return copy.deepcopy(rows)

    def list_couples(self) -> List[Dict[str, Any]]:
        return self.select("couples")

    def get_couple(self, couple_id: str) -> Optional[Dict[str, Any]]:
        rows = self.select("couples", id=couple_id)
        return rows[0] if rows else None

    def find_couples(
        self,
        wedding_date: Optional[str] = None,
        name_prefix: Optional[str] = None,
        name_contains: Optional[str] = None,
        name_equals: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        matches = []
        for row in self.list_couples():
            name = (row.get("couple_name") or "").lower()
            if wedding_date is not None and row.get("wedding_date") != wedding_date:
                continue
            if name_prefix is not None and not name.startswith(name_prefix.lower()):
                continue
            if name_contains is not None and name_contains.lower() not in name:
                continue
            if name_equals is not None and name != name_equals.lower():
                continue
            matches.append(row)
        return matches

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = {"id": uuid.uuid4().hex, "created_at": datetime.now(timezone.utc).isoformat(), **copy.deepcopy(row)}
        self._rows(table).append(stored)
        logger.debug("Inserted %s row %s", table, stored["id"])
        return copy.deepcopy(stored)

    def insert_many(self, table: str, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.insert(table, row) for row in rows]

    def update(self, table: str, row_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        for row in self._rows(table):
            if row.get("id") == row_id:
                row.update(copy.deepcopy(fields))
                return copy.deepcopy(row)
        raise KeyError(f"No {table} row with id {row_id!r}")

    def upload_document(self, path: str, content: bytes, content_type: str = "application/pdf") -> str:
        self.blobs[path] = content
        return path
