"""Collect PDF documents from a directory for batch extraction."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from studioflow.core.models import SourceDocument

logger = logging.getLogger(__name__)


def load_documents(data_dir: Path, limit: Optional[int] = None) -> Tuple[List[SourceDocument], List[str]]:
    """Read every PDF under ``data_dir`` (non-recursive), returning documents and alerts."""

    documents: List[SourceDocument] = []
    alerts: List[str] = []

    logger.info("Loading documents from %s", data_dir)

    paths = sorted(path for path in data_dir.glob("*") if path.suffix.lower() == ".pdf")
    if limit is not None and len(paths) > limit:
        alerts.append(f"Only the first {limit} of {len(paths)} PDFs were loaded")
        paths = paths[:limit]

    for pdf_path in paths:
        try:
            documents.append(SourceDocument.from_path(pdf_path))
        except OSError:
            logger.exception("Failed to read document %s", pdf_path)
            alerts.append(f"Failed to read document {pdf_path.name}")

    logger.info("Loaded %d documents", len(documents))
    return documents, alerts
