"""Rule-based confidence scoring for extracted document payloads."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Tuple

from studioflow.core.models import Confidence, DocumentType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadBearingField:
    """A field whose presence indicates the extraction actually worked."""

    label: str
    present: Callable[[Dict[str, Any]], bool]


def lookup(fields: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts, returning None when absent."""

    current = fields
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def has_text(path: str) -> Callable[[Dict[str, Any]], bool]:
    def check(fields: Dict[str, Any]) -> bool:
        value = lookup(fields, path)
        return isinstance(value, str) and bool(value.strip())

    return check


def has_positive(path: str) -> Callable[[Dict[str, Any]], bool]:
    def check(fields: Dict[str, Any]) -> bool:
        value = lookup(fields, path)
        if isinstance(value, bool):
            return False
        return isinstance(value, (int, float)) and value > 0

    return check


def has_items(path: str) -> Callable[[Dict[str, Any]], bool]:
    def check(fields: Dict[str, Any]) -> bool:
        value = lookup(fields, path)
        return isinstance(value, list) and len(value) > 0

    return check


def all_of(*checks: Callable[[Dict[str, Any]], bool]) -> Callable[[Dict[str, Any]], bool]:
    return lambda fields: all(check(fields) for check in checks)


LOAD_BEARING_FIELDS: Dict[str, List[LoadBearingField]] = {
    DocumentType.CONTRACT.value: [
        LoadBearingField(
            "couple names",
            all_of(has_text("couple.bride_first_name"), has_text("couple.groom_first_name")),
        ),
        LoadBearingField("wedding date", has_text("wedding.wedding_date")),
        LoadBearingField("contract total", has_positive("financials.total")),
        LoadBearingField("installment schedule", has_items("installments")),
        LoadBearingField("signature info", has_text("signature.signer_name")),
    ],
    DocumentType.EXTRAS_QUOTE.value: [
        LoadBearingField("couple name", has_text("couple_name")),
        LoadBearingField("any items", has_items("items")),
        LoadBearingField("total price", has_positive("total")),
        LoadBearingField("inclusions", has_items("inclusions")),
    ],
    DocumentType.LEAD_QUOTE.value: [
        LoadBearingField("bride name", has_text("bride_first_name")),
        LoadBearingField("groom name", has_text("groom_first_name")),
        LoadBearingField("wedding date", has_text("wedding_date")),
        LoadBearingField("package type", has_text("package_type")),
        LoadBearingField("total price", has_positive("total")),
        LoadBearingField("ceremony venue", has_text("ceremony_venue")),
    ],
}


def score_fields(fields: Any, selectors: Iterable[LoadBearingField]) -> Tuple[int, List[str]]:
    """Count present load-bearing fields; one warning per absent field.

    Never raises: a predicate that trips over an unexpected shape counts the
    field as absent.
    """

    score = 0
    warnings: List[str] = []
    for selector in selectors:
        try:
            present = isinstance(fields, dict) and selector.present(fields)
        except (TypeError, AttributeError, ValueError):
            present = False
        if present:
            score += 1
        else:
            warnings.append(f"Could not extract {selector.label}")
    return score, warnings


def confidence_bucket(score: int, total: int) -> str:
    """Bucket a score: all-but-one present is high, at least half is medium."""

    if score >= total - 1:
        return Confidence.HIGH.value
    if score >= math.ceil(total / 2):
        return Confidence.MEDIUM.value
    return Confidence.LOW.value


def score_payload(document_type: str, fields: Any) -> Tuple[str, List[str]]:
    """Return ``(confidence, warnings)`` for a normalized field set."""

    selectors = LOAD_BEARING_FIELDS[DocumentType(document_type).value]
    score, warnings = score_fields(fields, selectors)
    confidence = confidence_bucket(score, len(selectors))
    if warnings:
        logger.debug("Scored %d/%d for %s: %s", score, len(selectors), document_type, "; ".join(warnings))
    return confidence, warnings
