"""Deterministic parser for the studio's own lead-quote PDFs.

Lead quotes are generated by the studio itself, so their layout is stable
enough for a section-by-section reading. This parser is what the lead-quote
extraction falls back to when the oracle is disabled or unreachable.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from studioflow.core.utils import get_config_value
from studioflow.ingestion.coercion import find_long_date, normalize_date, parse_money

logger = logging.getLogger(__name__)

SECTION_KEYWORDS = [
    ("COUPLE INFORMATION", "couple_info"),
    ("WEDDING DETAILS", "wedding_details"),
    ("YOUR PACKAGE", "package"),
    ("WEDDING DAY TIMELINE", "timeline"),
    ("PRICING SUMMARY", "pricing"),
    ("PAYMENT SCHEDULE", "payment"),
]

PHONE_PATTERN = re.compile(r"\d{3}[-.\s)]\s?\d{3}")


def _detect_section(line: str) -> Optional[str]:
    upper = " ".join(line.upper().split())
    for keyword, section in SECTION_KEYWORDS:
        if keyword in upper:
            return section
    return None


def _split_sections(lines: List[str]) -> Dict[str, List[str]]:
    sections: Dict[str, List[str]] = {"header": []}
    current = "header"
    for line in lines:
        detected = _detect_section(line)
        if detected:
            current = detected
            sections.setdefault(current, [])
            continue
        if line.strip():
            sections.setdefault(current, []).append(line.strip())
    return sections


def _label_value(text: str, label: str) -> str:
    match = re.search(rf"{label}\s*[:.]?\s*(.+)", text, re.IGNORECASE)
    if not match:
        return ""
    return re.sub(r"^[:.]\s*", "", match.group(1).strip())


def _line_amount(line: str) -> Optional[float]:
    """Prefer the last dollar amount on a line, else its last number."""

    dollars = re.findall(r"\$\s*(\d[\d,]*(?:\.\d+)?)", line)
    if dollars:
        return parse_money(dollars[-1])
    numbers = re.findall(r"\d[\d,]*(?:\.\d+)?", line)
    return parse_money(numbers[-1]) if numbers else None


def _name_parts(text: str, label: str) -> Tuple[str, str]:
    value = _label_value(text, label)
    parts = value.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def parse_quote_text(text: str) -> Tuple[Dict[str, Any], List[str]]:
    """Read a lead quote's text into lead-quote fields plus parse warnings."""

    warnings: List[str] = []
    fields: Dict[str, Any] = {}
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        warnings.append("PDF appears to be empty or image-based")
        return fields, warnings

    studio = get_config_value("STUDIO_NAME", "SIGS")
    if studio and studio.upper() not in text.upper():
        warnings.append(f"This does not appear to be a {studio} quote PDF")

    sections = _split_sections(lines)

    for line in sections.get("couple_info", []):
        lowered = line.lower()
        if "bride" in lowered:
            first, last = _name_parts(line, "Bride")
            if first:
                fields["bride_first_name"], fields["bride_last_name"] = first, last
        if "groom" in lowered:
            first, last = _name_parts(line, "Groom")
            if first:
                fields["groom_first_name"], fields["groom_last_name"] = first, last
        if "bride" in lowered or "groom" in lowered:
            continue
        if "@" in line:
            key = "bride_email" if "bride_email" not in fields else "groom_email"
            fields.setdefault(key, line)
        elif PHONE_PATTERN.search(line):
            key = "bride_phone" if "bride_phone" not in fields else "groom_phone"
            fields.setdefault(key, line)

    for line in sections.get("wedding_details", []):
        lowered = line.lower()
        if "date" in lowered and "wedding_date" not in fields:
            parsed = normalize_date(_label_value(line, "Date"))
            if parsed:
                fields["wedding_date"] = parsed
        if "wedding_date" not in fields:
            parsed = find_long_date(line)
            if parsed:
                fields["wedding_date"] = parsed
        if "ceremony" in lowered:
            fields["ceremony_venue"] = _label_value(line, "Ceremony") or fields.get("ceremony_venue", "")
        if "reception" in lowered:
            fields["reception_venue"] = _label_value(line, "Reception") or fields.get("reception_venue", "")
        if "details" in lowered:
            details = _label_value(line, "Details")
            guests = re.search(r"(\d+)\s*Guests", details, re.IGNORECASE)
            if guests:
                fields["guest_count"] = int(guests.group(1))
            party = re.search(r"(\d+)\s*Bridal Party", details, re.IGNORECASE)
            if party:
                fields["bridal_party_count"] = int(party.group(1))

    for line in sections.get("package", []):
        upper = line.upper()
        if "PHOTO ONLY" in upper:
            fields["package_type"] = "photo_only"
        elif any(marker in upper for marker in ("PHOTO AND VIDEO", "PHOTO+VIDEO", "PHOTO & VIDEO")):
            fields["package_type"] = "photo_video"
        hours = re.search(r"(.+?)\s*[—–-]\s*(\d+)\s*hours", line, re.IGNORECASE)
        if hours:
            fields["package_name"] = hours.group(1).strip()
            fields["coverage_hours"] = int(hours.group(2))

    for line in sections.get("pricing", []):
        upper = line.upper()
        amount = _line_amount(line)
        if "DISCOUNT" in upper:
            fields["discount"] = amount
        elif "SUBTOTAL" in upper:
            fields["subtotal"] = amount
        elif "HST" in upper:
            fields["hst"] = amount
        elif "TOTAL" in upper and amount:
            fields["total"] = amount

    logger.debug("Heuristic quote parse found %d fields", len(fields))
    return fields, warnings
