"""Field-by-field merge rules that never let an empty extraction erase known data."""
from __future__ import annotations

from typing import Any, Dict, Optional

from studioflow.core.models import Couple, CoupleStatus

DOCUMENT_IMPORT_SOURCE = "document_import"
UNNAMED_COUPLE = "Unnamed Couple"

# Set when a couple is created, never rewritten by a later document.
CREATE_ONLY_FIELDS = {"couple_name"}


def is_meaningful(value: Any) -> bool:
    """False for None, blank strings, zero, False, and empty containers."""

    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (list, dict, tuple, set)):
        return len(value) > 0
    return True


def merge_fields(existing: Optional[Dict[str, Any]], extracted: Dict[str, Any]) -> Dict[str, Any]:
    """Return the column updates that ``extracted`` may apply to ``existing``.

    Only meaningful extracted values are written. A present total replaces
    the stored one even when it is lower (a renegotiated contract), but an
    absent total never clears it.
    """

    updates: Dict[str, Any] = {}
    for key, value in extracted.items():
        if not is_meaningful(value):
            continue
        if existing is not None:
            if key in CREATE_ONLY_FIELDS and is_meaningful(existing.get(key)):
                continue
            if existing.get(key) == value:
                continue
        updates[key] = value
    return updates


def reconcile_balance(row: Dict[str, Any]) -> Optional[float]:
    """Balance owing for a couple row.

    Recomputed from the totals whenever contract and extras totals are both
    known and positive; otherwise the stored value is kept, and only an empty
    one is seeded from ``contract_total - total_paid``.
    """

    couple = Couple.from_row(row)
    derived = couple.derived_balance()
    if derived is not None:
        return derived
    if is_meaningful(couple.balance_owing):
        return couple.balance_owing
    if is_meaningful(couple.contract_total):
        return round(float(couple.contract_total) - float(couple.total_paid or 0), 2)
    return None


def new_couple_row(extracted: Dict[str, Any], filename: str) -> Dict[str, Any]:
    """Build a fresh ``couples`` row for a document that matched nobody."""

    row = {key: value for key, value in extracted.items() if is_meaningful(value)}
    row["couple_name"] = extracted.get("couple_name") or UNNAMED_COUPLE
    row["status"] = CoupleStatus.BOOKED.value
    row["lead_source"] = DOCUMENT_IMPORT_SOURCE
    row["notes"] = f"Imported from {filename}" if filename else "Imported from document"
    balance = reconcile_balance(row)
    if balance is not None:
        row["balance_owing"] = balance
    return row


def merged_couple_updates(existing: Dict[str, Any], extracted: Dict[str, Any]) -> Dict[str, Any]:
    """``merge_fields`` plus the balance that results from the merged totals."""

    updates = merge_fields(existing, extracted)
    balance = reconcile_balance({**existing, **updates})
    if balance is not None and balance != existing.get("balance_owing"):
        updates["balance_owing"] = balance
    return updates


def _full_name(first: str, last: str) -> str:
    return " ".join(part for part in (first, last) if part)


def couple_fields_from_contract(fields: Dict[str, Any]) -> Dict[str, Any]:
    couple = fields.get("couple") or {}
    wedding = fields.get("wedding") or {}
    bride = _full_name(couple.get("bride_first_name", ""), couple.get("bride_last_name", ""))
    groom = _full_name(couple.get("groom_first_name", ""), couple.get("groom_last_name", ""))
    wedding_date = wedding.get("wedding_date") or None
    return {
        "couple_name": " & ".join(part for part in (couple.get("bride_first_name", ""), groom) if part),
        "bride_name": bride,
        "groom_name": groom,
        "bride_email": couple.get("email"),
        "bride_phone": couple.get("phone"),
        "wedding_date": wedding_date,
        "wedding_year": int(wedding_date[:4]) if wedding_date else None,
        "photographer": (fields.get("team") or {}).get("photographer"),
        "contract_total": (fields.get("financials") or {}).get("total"),
    }


def couple_fields_from_lead_quote(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "couple_name": fields.get("couple_name"),
        "bride_name": _full_name(fields.get("bride_first_name", ""), fields.get("bride_last_name", "")),
        "bride_email": fields.get("bride_email"),
        "bride_phone": fields.get("bride_phone"),
        "groom_name": _full_name(fields.get("groom_first_name", ""), fields.get("groom_last_name", "")),
        "groom_email": fields.get("groom_email"),
        "groom_phone": fields.get("groom_phone"),
        "wedding_date": fields.get("wedding_date"),
        "wedding_year": fields.get("wedding_year"),
        "ceremony_venue": fields.get("ceremony_venue"),
        "reception_venue": fields.get("reception_venue"),
        "package_type": fields.get("package_type"),
        "coverage_hours": fields.get("coverage_hours"),
        "contract_total": fields.get("total"),
    }


def couple_fields_from_extras(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "couple_name": fields.get("couple_name"),
        "extras_total": fields.get("total"),
    }
