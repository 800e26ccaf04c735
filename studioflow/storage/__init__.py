"""Persistence session handles for the studio database and document bucket."""
from studioflow.storage.memory import MemoryStore
from studioflow.storage.tables import TABLES, document_path

__all__ = ["MemoryStore", "TABLES", "document_path"]
