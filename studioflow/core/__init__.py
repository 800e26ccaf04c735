"""Core building blocks for the studioflow package."""
from studioflow.core.logging import configure_logging
from studioflow.core.models import (
    BatchResult,
    Couple,
    DocumentType,
    ExtractedPayload,
    ImportItem,
    MatchCandidate,
    MatchIdentity,
    SourceDocument,
)
from studioflow.core.quality import confidence_bucket, score_fields, score_payload

__all__ = [
    "configure_logging",
    "BatchResult",
    "Couple",
    "DocumentType",
    "ExtractedPayload",
    "ImportItem",
    "MatchCandidate",
    "MatchIdentity",
    "SourceDocument",
    "confidence_bucket",
    "score_fields",
    "score_payload",
]
