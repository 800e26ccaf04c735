"""Extraction prompts and canonical field layouts for each document type."""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

from studioflow.core.models import DocumentType, ExtractedPayload, MatchIdentity
from studioflow.ingestion.coercion import FieldReader

LOCATION_FLAGS = ["loc_groom", "loc_bride", "loc_ceremony", "loc_park", "loc_reception"]

PRINT_SIZES = [
    "prints_postcard_thankyou",
    "prints_5x7",
    "prints_8x10",
    "prints_11x14",
    "prints_16x16",
    "prints_16x20",
    "prints_20x24",
    "prints_24x30",
    "prints_30x40",
]

VIDEO_FLAGS = [
    "video_digital_titles",
    "video_after_effects",
    "video_baby_pictures",
    "video_dating_pictures",
    "video_honeymoon_pictures",
    "video_invitation",
    "video_music",
    "video_end_credits",
    "video_recap",
    "video_hd",
    "video_sd",
    "video_gopro",
    "video_drone",
    "video_led_lights",
    "video_proof",
    "video_usb",
    "video_single_camera",
    "video_multi_camera",
    "video_slideshow",
]

ALBUM_KINDS = ["parent_albums", "bride_groom_album"]


def _contract_template() -> Dict[str, Any]:
    albums: Dict[str, Any] = {}
    for kind in ALBUM_KINDS:
        albums.update({f"{kind}_qty": 0, f"{kind}_size": "", f"{kind}_spreads": 0, f"{kind}_images": 0, f"{kind}_cover": ""})
    return {
        "couple": {
            "bride_first_name": "",
            "bride_last_name": "",
            "groom_first_name": "",
            "groom_last_name": "",
            "email": "",
            "phone": "",
        },
        "wedding": {"wedding_date": "", "start_time": "", "end_time": ""},
        "locations": {flag: False for flag in LOCATION_FLAGS},
        "engagement": {"engagement_session": False, "engagement_location": "", "engagement_notes": ""},
        "photos": {
            "usb_dropbox_delivery": True,
            **{size: 0 for size in PRINT_SIZES},
            "post_production": False,
            "drone_photography": False,
        },
        "albums": albums,
        "video": {**{flag: False for flag in VIDEO_FLAGS}, "video_highlights": 0},
        "web": {"web_personal_page": False, "web_engagement_upload": 0, "web_wedding_upload": 0},
        "team": {"photographer": "", "videographer": ""},
        "financials": {"subtotal": 0, "tax": 0, "total": 0, "signed_date": ""},
        "installments": [{"installment_number": 1, "due_description": "", "amount": 0, "due_date": None}],
        "signature": {"signer_name": "", "signer_email": "", "signed_at": "", "ip_address": ""},
        "appointment_notes": "",
    }


CONTRACT_PROMPT = """You are extracting structured data from a wedding photography contract PDF. The PDF has 3-4 pages:
- Page 1: Couple info, wedding date/time, locations, engagement, deliverables (prints, albums, video, web)
- Page 2: Photographer name, installment schedule, subtotal/tax/total, appointment notes
- Page 3: Terms & conditions (IGNORE entirely)
- Page 4: E-signature audit trail with signature date, email, IP address

PARSING RULES:
- Checkmarks mean true. Blank, unchecked, or n/a means false.
- Print quantities: patterns like "11x14__1___" mean that print size has quantity 1. A blank or 0 means 0.
- Albums: "Parents (2) Size: __10x8__" means qty=2, size="10x8". Parse spreads, images, and cover type similarly.
- Video highlights: a number next to "highlights" is video_highlights.
- "<Name> is the photographer" means photographer="<Name>". Same for videographer.
- USB/Dropbox delivery is ALWAYS true.
- Installments: a due description with a specific date ("December 1st 2024") gets an ISO due_date (2024-12-01). Event-based ones ("Engagement Photo session") get due_date=null.
- Signature info comes from the audit trail on the last page: signer name, email, signed timestamp, IP address.
- Appointment notes are free-form text, usually at the bottom of page 2.
- wedding_date is ISO format (YYYY-MM-DD); start_time and end_time keep the document's format (e.g. "2:00 PM").

Return ONLY valid JSON matching this exact structure (no explanation, no markdown fences):

""" + json.dumps(_contract_template(), indent=2)

EXTRAS_PROMPT = """Extract the following from this "Frames & Album" extras quote PDF and return as JSON:

- couple_name: The couple's names (e.g. "Amanda & Justin Kong")
- items: Array of objects, each with:
  - name: Item name (e.g. "Wedding Collage", "28x11 Digital Album", "Wedding Frame 24x30")
  - description: Item details (size, material, specs)
  - price: Individual item price as number, or null if not listed separately
- inclusions: Array of strings for included services (e.g. "Online proofing gallery")
- total: Total price as number (look for "Total", "Package Total", "Grand Total")
- remaining_balance: Remaining balance as number, or null if not listed
- payment_schedule: Array of objects with { milestone: string, amount: number }, or null if not listed

Items are physical products like frames, albums, collages, portraits, digital files.
Inclusions are services or digital deliverables included in the package; never put them in items.

If a field cannot be determined, use null for numbers and empty arrays for lists.
Return ONLY valid JSON, no explanation or markdown."""

LEAD_QUOTE_PROMPT = """Extract the following from this wedding photography quote PDF and return as JSON:

- bride_first_name, bride_last_name, groom_first_name, groom_last_name
- bride_email, groom_email, bride_phone, groom_phone
- wedding_date: ISO format (YYYY-MM-DD)
- ceremony_venue, reception_venue
- guest_count, bridal_party_count: numbers or null
- package_type: "photo_only" or "photo_video", or null when unclear
- package_name: e.g. "Gold Collection"; coverage_hours: number or null
- subtotal, discount, hst, total: numbers or null

Use empty strings for unknown text and null for unknown numbers.
Return ONLY valid JSON, no explanation or markdown."""


def normalize_contract(raw: Any, reader: Optional[FieldReader] = None) -> Dict[str, Any]:
    """Coerce raw oracle output into the canonical contract layout."""

    reader = reader or FieldReader(raw)
    template = _contract_template()
    fields: Dict[str, Any] = {}
    for section in ("couple", "wedding", "locations", "engagement", "photos", "albums", "video", "web", "team", "signature"):
        values: Dict[str, Any] = {}
        for key, default in template[section].items():
            path = f"{section}.{key}"
            if isinstance(default, bool):
                values[key] = reader.flag(path)
            elif isinstance(default, (int, float)):
                values[key] = reader.integer(path)
            elif key == "wedding_date":
                values[key] = reader.date(path)
            else:
                values[key] = reader.text(path)
        fields[section] = values

    fields["photos"]["usb_dropbox_delivery"] = True
    fields["financials"] = {
        "subtotal": reader.number("financials.subtotal"),
        "tax": reader.number("financials.tax"),
        "total": reader.number("financials.total"),
        "signed_date": reader.text("financials.signed_date"),
    }
    fields["installments"] = [
        {
            "installment_number": entry.integer("installment_number", default=None) or position,
            "due_description": entry.text("due_description"),
            "amount": entry.number("amount"),
            "due_date": entry.date("due_date") or None,
        }
        for position, entry in enumerate(reader.items("installments"), start=1)
    ]
    fields["appointment_notes"] = reader.text("appointment_notes")
    return fields


def normalize_extras(raw: Any, reader: Optional[FieldReader] = None) -> Dict[str, Any]:
    """Coerce raw oracle output into the canonical extras-quote layout."""

    reader = reader or FieldReader(raw)
    schedule: Optional[List[Dict[str, Any]]] = None
    if reader.is_list("payment_schedule"):
        schedule = [
            {"milestone": entry.text("milestone"), "amount": entry.number("amount")}
            for entry in reader.items("payment_schedule")
        ]
    return {
        "couple_name": reader.text("couple_name"),
        "items": [
            {
                "name": entry.text("name"),
                "description": entry.text("description"),
                "price": entry.optional_number("price"),
            }
            for entry in reader.items("items")
        ],
        "inclusions": reader.strings("inclusions"),
        "total": reader.optional_number("total"),
        "remaining_balance": reader.optional_number("remaining_balance"),
        "payment_schedule": schedule,
    }


def lead_quote_couple_name(bride_first: str, groom_first: str, groom_last: str) -> str:
    groom_full = " ".join(part for part in (groom_first, groom_last) if part)
    return " & ".join(part for part in (bride_first, groom_full) if part)


def normalize_lead_quote(raw: Any, reader: Optional[FieldReader] = None) -> Dict[str, Any]:
    """Coerce raw oracle (or heuristic) output into the canonical lead-quote layout."""

    reader = reader or FieldReader(raw)
    fields: Dict[str, Any] = {
        key: reader.text(key)
        for key in (
            "bride_first_name",
            "bride_last_name",
            "groom_first_name",
            "groom_last_name",
            "bride_email",
            "groom_email",
            "bride_phone",
            "groom_phone",
            "ceremony_venue",
            "reception_venue",
            "package_name",
        )
    }
    fields["wedding_date"] = reader.date("wedding_date") or None
    package_type = reader.text("package_type").lower().replace("+", "_").replace(" ", "_")
    fields["package_type"] = package_type if package_type in {"photo_only", "photo_video"} else None
    for key in ("guest_count", "bridal_party_count", "coverage_hours"):
        fields[key] = reader.integer(key, default=None)
    for key in ("subtotal", "discount", "hst", "total"):
        fields[key] = reader.optional_number(key)
    fields["couple_name"] = lead_quote_couple_name(
        fields["bride_first_name"], fields["groom_first_name"], fields["groom_last_name"]
    )
    fields["wedding_year"] = int(fields["wedding_date"][:4]) if fields["wedding_date"] else None
    return fields


PROMPTS: Dict[str, str] = {
    DocumentType.CONTRACT.value: CONTRACT_PROMPT,
    DocumentType.EXTRAS_QUOTE.value: EXTRAS_PROMPT,
    DocumentType.LEAD_QUOTE.value: LEAD_QUOTE_PROMPT,
}

NORMALIZERS: Dict[str, Callable[..., Dict[str, Any]]] = {
    DocumentType.CONTRACT.value: normalize_contract,
    DocumentType.EXTRAS_QUOTE.value: normalize_extras,
    DocumentType.LEAD_QUOTE.value: normalize_lead_quote,
}


def empty_fields(document_type: str) -> Dict[str, Any]:
    """The maximally-empty field set for a document type."""

    return NORMALIZERS[DocumentType(document_type).value]({})


def payload_identity(payload: ExtractedPayload) -> MatchIdentity:
    """Derive the matcher's view of who a payload is about."""

    fields = payload.fields or {}
    document_type = DocumentType(payload.document_type)
    if document_type is DocumentType.CONTRACT:
        couple = fields.get("couple") or {}
        bride = couple.get("bride_first_name") or ""
        groom = couple.get("groom_first_name") or ""
        return MatchIdentity(
            display_name=lead_quote_couple_name(bride, groom, couple.get("groom_last_name") or ""),
            primary_first_name=bride,
            secondary_first_name=groom,
            wedding_date=(fields.get("wedding") or {}).get("wedding_date") or None,
        )
    if document_type is DocumentType.LEAD_QUOTE:
        return MatchIdentity(
            display_name=fields.get("couple_name") or "",
            primary_first_name=fields.get("bride_first_name") or "",
            secondary_first_name=fields.get("groom_first_name") or "",
            wedding_date=fields.get("wedding_date") or None,
        )
    return MatchIdentity(display_name=fields.get("couple_name") or "")
