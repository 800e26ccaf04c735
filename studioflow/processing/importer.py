"""Write reviewed payloads into the studio database one item at a time."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Dict, Iterable, Optional

from studioflow.core.errors import RelatedRecordsError
from studioflow.core.models import (
    BatchResult,
    DocumentType,
    Done,
    Error,
    ExtractedPayload,
    ImportItem,
    Importing,
    ItemOutcome,
    Ready,
    SourceDocument,
)
from studioflow.processing.matching import match_couple
from studioflow.processing.merge import (
    couple_fields_from_contract,
    couple_fields_from_extras,
    couple_fields_from_lead_quote,
    merged_couple_updates,
    new_couple_row,
)
from studioflow.processing.schemas import payload_identity
from studioflow.storage.tables import (
    CONTRACT_INSTALLMENTS,
    CONTRACT_SIGNATURES,
    CONTRACTS,
    COUPLES,
    EXTRAS_ORDERS,
    QUOTES,
    document_path,
)

logger = logging.getLogger(__name__)

OnUpdate = Callable[[ImportItem], None]

MISSING_NAME_MESSAGE = "No couple name was extracted; add one before importing"

COUPLE_MAPPERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    DocumentType.CONTRACT.value: couple_fields_from_contract,
    DocumentType.EXTRAS_QUOTE.value: couple_fields_from_extras,
    DocumentType.LEAD_QUOTE.value: couple_fields_from_lead_quote,
}

BLOB_PREFIXES = {
    DocumentType.CONTRACT.value: "contract-",
    DocumentType.EXTRAS_QUOTE.value: "extras-",
    DocumentType.LEAD_QUOTE.value: "",
}

CONTRACT_SNAPSHOT_SECTIONS = ("couple", "wedding", "locations", "engagement", "photos", "albums", "video", "web", "team")

QUOTE_SNAPSHOT_FIELDS = (
    "package_type",
    "package_name",
    "coverage_hours",
    "guest_count",
    "bridal_party_count",
    "wedding_date",
    "ceremony_venue",
    "reception_venue",
    "subtotal",
    "discount",
    "hst",
    "total",
)


def write_couple(store, payload: ExtractedPayload) -> str:
    """Match, merge, and persist the couple row; returns its id."""

    fields = COUPLE_MAPPERS[payload.document_type](payload.fields)
    match = match_couple(store, payload_identity(payload))
    if match is None:
        created = store.insert(COUPLES, new_couple_row(fields, payload.filename))
        logger.info("Created couple %s (%s) from %s", created["id"], created.get("couple_name"), payload.filename)
        return created["id"]

    updates = merged_couple_updates(match.record, fields)
    if updates:
        store.update(COUPLES, match.customer_id, updates)
    logger.info(
        "Updated couple %s from %s (%d fields via %s)",
        match.customer_id,
        payload.filename,
        len(updates),
        match.tier.value,
    )
    return match.customer_id


def _insert_contract_records(store, customer_id: str, fields: Dict[str, Any]) -> None:
    snapshot: Dict[str, Any] = {"couple_id": customer_id}
    for section in CONTRACT_SNAPSHOT_SECTIONS:
        snapshot.update(fields.get(section) or {})
    financials = fields.get("financials") or {}
    snapshot.update(
        subtotal=financials.get("subtotal"),
        tax=financials.get("tax"),
        total=financials.get("total"),
        signed_date=financials.get("signed_date") or None,
        appointment_notes=fields.get("appointment_notes") or None,
    )
    contract = store.insert(CONTRACTS, snapshot)

    installments = [
        {
            "contract_id": contract["id"],
            "installment_number": entry.get("installment_number"),
            "due_description": entry.get("due_description"),
            "amount": entry.get("amount"),
            "due_date": entry.get("due_date"),
        }
        for entry in fields.get("installments") or []
    ]
    if installments:
        store.insert_many(CONTRACT_INSTALLMENTS, installments)

    signature = fields.get("signature") or {}
    if signature.get("signer_name"):
        store.insert(
            CONTRACT_SIGNATURES,
            {
                "contract_id": contract["id"],
                "signer_name": signature.get("signer_name"),
                "signer_email": signature.get("signer_email") or None,
                "signed_at": signature.get("signed_at") or None,
                "ip_address": signature.get("ip_address") or None,
            },
        )


def _insert_extras_order(store, customer_id: str, fields: Dict[str, Any]) -> None:
    inclusions = fields.get("inclusions") or []
    store.insert(
        EXTRAS_ORDERS,
        {
            "couple_id": customer_id,
            "order_type": "frames_albums",
            "status": "confirmed",
            "order_date": date.today().isoformat(),
            "items": fields.get("items") or [],
            "total": fields.get("total"),
            "notes": f"Inclusions: {'; '.join(inclusions)}" if inclusions else None,
        },
    )


def _insert_quote(store, customer_id: str, fields: Dict[str, Any]) -> None:
    row = {key: fields.get(key) for key in QUOTE_SNAPSHOT_FIELDS}
    row["couple_id"] = customer_id
    store.insert(QUOTES, row)


RELATED_WRITERS = {
    DocumentType.CONTRACT.value: _insert_contract_records,
    DocumentType.EXTRAS_QUOTE.value: _insert_extras_order,
    DocumentType.LEAD_QUOTE.value: _insert_quote,
}


def import_document(store, payload: ExtractedPayload) -> str:
    """Persist one payload and its related rows; returns the couple id.

    Raises ``RelatedRecordsError`` when the couple write succeeded but a
    related-table write did not. Any other error means nothing was written
    for the couple.
    """

    customer_id = write_couple(store, payload)
    try:
        RELATED_WRITERS[payload.document_type](store, customer_id, payload.fields)
    except Exception as exc:
        raise RelatedRecordsError(f"Couple saved but related records failed: {exc}", customer_id) from exc
    return customer_id


def upload_source(store, customer_id: str, document: SourceDocument, document_type: str) -> Optional[str]:
    """Archive the source PDF under the couple; failures only log a warning."""

    path = document_path(customer_id, document.filename, BLOB_PREFIXES[document_type])
    try:
        return store.upload_document(path, document.content, document.content_type)
    except Exception as exc:
        logger.warning("Document upload failed for %s: %s", path, exc)
        return None


def notify_update(item: ImportItem, on_update: Optional[OnUpdate]) -> None:
    """Call a progress callback; its failures are logged, never raised."""

    if on_update is None:
        return
    try:
        on_update(item)
    except Exception:
        logger.exception("Progress callback failed for %s", item.document.filename)


def _advance(item: ImportItem, state, on_update: Optional[OnUpdate]) -> ImportItem:
    item = replace(item, state=state)
    notify_update(item, on_update)
    return item


def import_item(store, item: ImportItem, on_update: Optional[OnUpdate] = None) -> ImportItem:
    """Import one ``Ready`` item and return it in its ``Done`` or ``Error`` state."""

    payload = item.payload
    if not isinstance(item.state, Ready) or payload is None:
        return item

    if not payload_identity(payload).display_name.strip():
        logger.warning("Refusing to import %s: no couple name was extracted", item.document.filename)
        return _advance(item, Error(MISSING_NAME_MESSAGE, payload=payload), on_update)

    item = _advance(item, Importing(payload), on_update)
    try:
        customer_id = import_document(store, payload)
    except RelatedRecordsError as exc:
        logger.exception("Partial import for %s", item.document.filename)
        return _advance(item, Error(str(exc), customer_id=exc.customer_id, payload=payload), on_update)
    except Exception as exc:
        logger.exception("Import failed for %s", item.document.filename)
        return _advance(item, Error(str(exc) or exc.__class__.__name__, payload=payload), on_update)

    upload_source(store, customer_id, item.document, payload.document_type)
    return _advance(item, Done(customer_id), on_update)


def import_batch(store, items: Iterable[ImportItem], on_update: Optional[OnUpdate] = None) -> BatchResult:
    """Import every selected ``Ready`` item in order, never aborting the batch."""

    result = BatchResult()
    for item in items:
        if not item.selected or not isinstance(item.state, Ready):
            continue
        final = import_item(store, item, on_update)
        state = final.state
        result.per_item.append(
            ItemOutcome(
                item_id=final.item_id,
                filename=final.document.filename,
                status=final.status,
                customer_id=getattr(state, "customer_id", None),
                error=state.message if isinstance(state, Error) else None,
            )
        )
        if isinstance(state, Done):
            result.succeeded += 1
        else:
            result.failed += 1

    logger.info("Batch import finished: %d succeeded, %d failed", result.succeeded, result.failed)
    return result
