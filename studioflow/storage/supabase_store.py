"""Persistence backed by the hosted Supabase (Postgres + storage) project."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client, create_client

from studioflow.core.utils import get_config_value, load_env_file
from studioflow.storage.tables import COUPLES, DEFAULT_BUCKET

logger = logging.getLogger(__name__)
DEFAULT_SUPABASE_ENV_FILE = Path("secrets/supabase.env")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseStore:
    """Thin wrapper over a supabase-py client, passed explicitly to every operation."""

    def __init__(self, client: Client, bucket: str = DEFAULT_BUCKET) -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls) -> "SupabaseStore":
        """Build a store from ``SUPABASE_URL`` / ``SUPABASE_KEY`` (secrets or env)."""

        load_env_file(Path(os.getenv("SUPABASE_ENV_FILE", DEFAULT_SUPABASE_ENV_FILE)))
        url = get_config_value("SUPABASE_URL")
        key = get_config_value("SUPABASE_KEY")
        if not url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY are required; set them in the environment, "
                f"Streamlit secrets, or {DEFAULT_SUPABASE_ENV_FILE}"
            )
        return cls(create_client(url, key), bucket=get_config_value("SUPABASE_BUCKET", DEFAULT_BUCKET))

    def select(self, table: str, **equals: Any) -> List[Dict[str, Any]]:
        query = self.client.table(table).select("*")
        for key, value in equals.items():
            query = query.eq(key, value)
        return query.order("created_at").execute().data or []

    def list_couples(self) -> List[Dict[str, Any]]:
        return self.select(COUPLES)

    def get_couple(self, couple_id: str) -> Optional[Dict[str, Any]]:
        rows = self.client.table(COUPLES).select("*").eq("id", couple_id).limit(1).execute().data
        return rows[0] if rows else None

    def find_couples(
        self,
        wedding_date: Optional[str] = None,
        name_prefix: Optional[str] = None,
        name_contains: Optional[str] = None,
        name_equals: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = self.client.table(COUPLES).select("*")
        if wedding_date is not None:
            query = query.eq("wedding_date", wedding_date)
        if name_prefix is not None:
            query = query.ilike("couple_name", f"{_escape_like(name_prefix)}%")
        if name_contains is not None:
            query = query.ilike("couple_name", f"%{_escape_like(name_contains)}%")
        if name_equals is not None:
            query = query.ilike("couple_name", _escape_like(name_equals))
        return query.order("created_at").execute().data or []

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self.client.table(table).insert(row).execute().data
        if not rows:
            raise RuntimeError(f"Insert into {table} returned no row")
        return rows[0]

    def insert_many(self, table: str, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = list(rows)
        if not rows:
            return []
        return self.client.table(table).insert(rows).execute().data or []

    def update(self, table: str, row_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        rows = self.client.table(table).update(fields).eq("id", row_id).execute().data
        if not rows:
            raise KeyError(f"No {table} row with id {row_id!r}")
        return rows[0]

    def upload_document(self, path: str, content: bytes, content_type: str = "application/pdf") -> str:
        self.client.storage.from_(self.bucket).upload(
            path=path,
            file=content,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        logger.info("Uploaded %s to bucket %s", path, self.bucket)
        return path
