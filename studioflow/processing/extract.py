"""Turn document bytes into scored, normalized payloads."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from studioflow.core.errors import ExtractionFailure, OracleUnavailable
from studioflow.core.models import Confidence, DocumentType, ExtractedPayload, SourceDocument
from studioflow.core.quality import score_payload
from studioflow.ingestion.coercion import FieldReader
from studioflow.ingestion.pdf_text import extract_text
from studioflow.ingestion.quotes import parse_quote_text
from studioflow.processing.oracle import ExtractionOracle
from studioflow.processing.schemas import NORMALIZERS, PROMPTS, empty_fields, payload_identity

logger = logging.getLogger(__name__)


def extract(
    document_bytes: bytes,
    document_type: str,
    filename: str = "",
    oracle: Optional[ExtractionOracle] = None,
) -> ExtractedPayload:
    """Extract, normalize, and score one document.

    Raises ``EmptyDocument`` when no text is recoverable and
    ``OracleMalformedResponse`` / ``OracleUnavailable`` when the oracle cannot
    produce usable JSON. Lead quotes fall back to the heuristic parser when
    the oracle is unavailable.
    """

    doc_type = DocumentType(document_type).value
    text = extract_text(document_bytes)
    logger.info("[%s] %s: %d chars extracted", doc_type, filename or "<document>", len(text))

    oracle = oracle or ExtractionOracle()
    extra_warnings: List[str] = []
    try:
        raw = oracle.extract_json(PROMPTS[doc_type], text)
    except OracleUnavailable:
        if doc_type != DocumentType.LEAD_QUOTE.value:
            raise
        logger.info("Oracle unavailable; parsing %s with quote heuristics", filename or "<document>")
        raw, extra_warnings = parse_quote_text(text)

    reader = FieldReader(raw)
    fields = NORMALIZERS[doc_type](raw, reader)
    confidence, warnings = score_payload(doc_type, fields)
    payload = ExtractedPayload(
        document_type=doc_type,
        filename=filename,
        fields=fields,
        confidence=confidence,
        warnings=extra_warnings + warnings + reader.warnings,
    )
    logger.info(
        "[%s] %s: name=%r confidence=%s warnings=%d",
        doc_type,
        filename or "<document>",
        payload_identity(payload).display_name,
        payload.confidence,
        len(payload.warnings),
    )
    return payload


def empty_payload(document_type: str, filename: str, warning: str) -> ExtractedPayload:
    """A low-confidence, maximally-empty payload carrying one explicit warning."""

    return ExtractedPayload(
        document_type=DocumentType(document_type).value,
        filename=filename,
        fields=empty_fields(document_type),
        confidence=Confidence.LOW.value,
        warnings=[warning],
    )


def extract_or_empty(
    document_bytes: bytes,
    document_type: str,
    filename: str = "",
    oracle: Optional[ExtractionOracle] = None,
) -> ExtractedPayload:
    """Like ``extract`` but recovers extraction failures into an empty payload."""

    try:
        return extract(document_bytes, document_type, filename=filename, oracle=oracle)
    except ExtractionFailure as exc:
        logger.warning("Extraction failed for %s: %s", filename or "<document>", exc)
        return empty_payload(document_type, filename, str(exc))


def extract_documents(
    documents: Iterable[SourceDocument],
    document_type: str,
    oracle: Optional[ExtractionOracle] = None,
    max_workers: int = 4,
) -> List[ExtractedPayload]:
    """Extract many documents concurrently; results keep the input order.

    Extraction has no shared-state dependency, so it is safe to overlap the
    oracle calls. Writes are never done here.
    """

    document_list = list(documents)
    if not document_list:
        return []
    oracle = oracle or ExtractionOracle()
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(document_list)))) as executor:
        futures = [
            executor.submit(extract_or_empty, document.content, document_type, document.filename, oracle)
            for document in document_list
        ]
        return [future.result() for future in futures]
