"""Row layouts for import reports and extraction previews."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from studioflow.core.models import DocumentType, ExtractedPayload, ItemOutcome
from studioflow.processing.schemas import payload_identity

REPORT_HEADERS = ["Item", "File", "Status", "Customer_Id", "Error"]

PAYLOAD_HEADERS = ["File", "Type", "Name", "Wedding_Date", "Total", "Confidence", "Warnings"]


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split())


def _format_amount(value: float | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def outcome_to_row(outcome: ItemOutcome) -> Dict[str, Any]:
    return {
        "Item": outcome.item_id,
        "File": outcome.filename,
        "Status": outcome.status,
        "Customer_Id": outcome.customer_id or "",
        "Error": _clean_text(outcome.error),
    }


def _payload_total(payload: ExtractedPayload) -> Optional[float]:
    if payload.document_type == DocumentType.CONTRACT.value:
        return (payload.fields.get("financials") or {}).get("total")
    return payload.fields.get("total")


def payload_to_row(payload: ExtractedPayload) -> Dict[str, Any]:
    """Convert an extracted payload into a preview-sheet row."""

    identity = payload_identity(payload)
    return {
        "File": payload.filename,
        "Type": payload.document_type,
        "Name": _clean_text(identity.display_name),
        "Wedding_Date": identity.wedding_date or "",
        "Total": _format_amount(_payload_total(payload)),
        "Confidence": payload.confidence,
        "Warnings": "; ".join(payload.warnings),
    }


def outcomes_to_rows(outcomes: Iterable[ItemOutcome]) -> List[Dict[str, Any]]:
    return [outcome_to_row(outcome) for outcome in outcomes]


def payloads_to_rows(payloads: Iterable[ExtractedPayload]) -> List[Dict[str, Any]]:
    return [payload_to_row(payload) for payload in payloads]
