"""Payments, lifecycle status changes, and per-couple summaries."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from studioflow.core.errors import InvalidStatusTransition
from studioflow.core.models import Couple, CoupleStatus
from studioflow.processing.merge import reconcile_balance
from studioflow.storage.tables import (
    CONTRACTS,
    COUPLES,
    DELIVERABLES,
    EXTRAS_ORDERS,
    PAYMENTS,
    STAFF_ASSIGNMENTS,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    CoupleStatus.PROSPECT: {CoupleStatus.BOOKED, CoupleStatus.CANCELLED},
    CoupleStatus.BOOKED: {CoupleStatus.COMPLETED, CoupleStatus.CANCELLED},
    CoupleStatus.COMPLETED: set(),
    CoupleStatus.CANCELLED: {CoupleStatus.PROSPECT},
}


def _require_couple(store, couple_id: str) -> Dict[str, Any]:
    couple = store.get_couple(couple_id)
    if couple is None:
        raise KeyError(f"No couple with id {couple_id!r}")
    return couple


def record_payment(
    store,
    couple_id: str,
    amount: float,
    payment_date: str,
    method: Optional[str] = None,
    from_name: Optional[str] = None,
    payment_type: Optional[str] = None,
    label: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """Insert a payment and roll it into the couple's paid and owing totals."""

    if amount is None or amount <= 0:
        raise ValueError("Payment amount must be positive")
    couple = _require_couple(store, couple_id)

    payment = store.insert(
        PAYMENTS,
        {
            "couple_id": couple_id,
            "amount": amount,
            "payment_date": payment_date,
            "method": method,
            "from_name": from_name,
            "payment_type": payment_type,
            "label": label,
            "notes": notes,
        },
    )

    previous_balance = reconcile_balance(couple)
    total_paid = round(float(couple.get("total_paid") or 0) + amount, 2)
    updates: Dict[str, Any] = {"total_paid": total_paid}
    balance = Couple.from_row({**couple, **updates}).derived_balance()
    if balance is None and previous_balance is not None:
        balance = round(previous_balance - amount, 2)
    if balance is not None:
        updates["balance_owing"] = balance
    store.update(COUPLES, couple_id, updates)
    logger.info("Recorded payment of %.2f for couple %s (balance %s)", amount, couple_id, balance)
    return payment


def transition_status(
    store,
    couple_id: str,
    status: str,
    booked_date: Optional[str] = None,
    contract_total: Optional[float] = None,
) -> Dict[str, Any]:
    """Move a couple through its lifecycle. Couples are never deleted."""

    couple = _require_couple(store, couple_id)
    try:
        target = CoupleStatus(status)
    except ValueError as exc:
        raise InvalidStatusTransition(f"Unknown status {status!r}") from exc
    current = CoupleStatus(couple.get("status") or CoupleStatus.PROSPECT.value)
    if target is current:
        return couple
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(f"Cannot move couple from {current.value} to {target.value}")

    updates: Dict[str, Any] = {"status": target.value}
    if target is CoupleStatus.BOOKED:
        updates["booked_date"] = booked_date or date.today().isoformat()
        if contract_total is not None:
            updates["contract_total"] = contract_total
            balance = reconcile_balance({**couple, **updates, "balance_owing": None})
            if balance is not None:
                updates["balance_owing"] = balance
    logger.info("Couple %s: %s -> %s", couple_id, current.value, target.value)
    return store.update(COUPLES, couple_id, updates)


def couple_summary(store, couple_id: str) -> Dict[str, Any]:
    couple = _require_couple(store, couple_id)
    return {
        "couple": couple,
        "payments": store.select(PAYMENTS, couple_id=couple_id),
        "deliverables": store.select(DELIVERABLES, couple_id=couple_id),
        "staff_assignments": store.select(STAFF_ASSIGNMENTS, couple_id=couple_id),
        "extras_orders": store.select(EXTRAS_ORDERS, couple_id=couple_id),
        "contracts": store.select(CONTRACTS, couple_id=couple_id),
    }
