"""Defensive accessors for oracle output that may have any shape."""
from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from studioflow.core.quality import lookup

TRUTHY_MARKS = {"true", "yes", "y", "1", "x", "✓", "checked", "included"}
FALSY_MARKS = {"false", "no", "n", "0", "", "n/a", "na", "none", "unchecked"}

DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%A, %B %d, %Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
]


def parse_money(raw: Any) -> Optional[float]:
    """Convert strings like ``$1,234.50`` or ``1.234,50 €`` into floats."""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    match = re.search(r"-?\d[\d.,]*", str(raw))
    if not match:
        return None
    normalized = match.group(0).rstrip(".,")

    # European-style decimals (comma) vs. US-style (dot)
    if re.search(r",\d{2}$", normalized):
        normalized = normalized.replace(".", "").replace(",", ".")
    else:
        normalized = normalized.replace(",", "")

    try:
        return float(normalized)
    except ValueError:
        return None


def normalize_date(raw: Any) -> Optional[str]:
    """Return an ISO ``YYYY-MM-DD`` date or None when the text is not a date."""

    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    if "T" in text and len(text.split("T", 1)[0]) == 10:
        text = text.split("T", 1)[0]
    text = re.sub(r"(\d{1,2})(st|nd|rd|th)\b", r"\1", text)
    text = " ".join(text.split())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    embedded = re.search(r"([A-Za-z]+)\s+(\d{1,2}),?\s+(\d{4})", text)
    if embedded and embedded.group(0) != text:
        return normalize_date(embedded.group(0))
    return None


def find_long_date(text: str) -> Optional[str]:
    """Find the first ``Month D, YYYY`` style date inside free text."""

    for match in re.finditer(r"([A-Za-z]+)\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})", text):
        parsed = normalize_date(match.group(0))
        if parsed:
            return parsed
    return None


class FieldReader:
    """Typed access to untrusted JSON that substitutes defaults and records why.

    Absent values silently become the default; values of the wrong type
    become the default *and* leave a warning behind so a reviewer can see
    the oracle answered something unexpected.
    """

    def __init__(self, raw: Any, prefix: str = "", warnings: Optional[List[str]] = None) -> None:
        self.warnings: List[str] = warnings if warnings is not None else []
        self.prefix = prefix
        if raw is None or isinstance(raw, dict):
            self.raw: Dict[str, Any] = raw or {}
        else:
            self.raw = {}
            self.warnings.append(f"Ignored {prefix or 'payload'}: expected an object")

    def _get(self, path: str) -> Any:
        return lookup(self.raw, path)

    def _mismatch(self, path: str, expected: str, value: Any) -> None:
        label = f"{self.prefix}.{path}" if self.prefix else path
        self.warnings.append(f"Ignored {label}: expected {expected}, got {type(value).__name__}")

    def text(self, path: str, default: str = "") -> str:
        value = self._get(path)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        self._mismatch(path, "text", value)
        return default

    def number(self, path: str, default: Optional[float] = 0) -> Optional[float]:
        value = self._get(path)
        if value is None or value == "":
            return default
        if isinstance(value, bool):
            self._mismatch(path, "a number", value)
            return default
        parsed = value if isinstance(value, (int, float)) else None
        if isinstance(value, str):
            parsed = parse_money(value)
        if parsed is None:
            self._mismatch(path, "a number", value)
            return default
        # json.loads accepts NaN, Infinity and overflowing literals such as 1e400.
        try:
            finite = math.isfinite(parsed)
        except OverflowError:
            finite = False
        if not finite:
            self._mismatch(path, "a finite number", value)
            return default
        return parsed

    def optional_number(self, path: str) -> Optional[float]:
        return self.number(path, default=None)

    def integer(self, path: str, default: Optional[int] = 0) -> Optional[int]:
        value = self.number(path, default=None)
        if value is None:
            return default
        return int(value)

    def flag(self, path: str, default: bool = False) -> bool:
        value = self._get(path)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUTHY_MARKS:
                return True
            if lowered in FALSY_MARKS:
                return False
        self._mismatch(path, "a checkbox value", value)
        return default

    def date(self, path: str) -> str:
        value = self.text(path)
        if not value:
            return ""
        parsed = normalize_date(value)
        if parsed is None:
            label = f"{self.prefix}.{path}" if self.prefix else path
            self.warnings.append(f"Ignored {label}: unrecognized date {value!r}")
            return ""
        return parsed

    def items(self, path: str) -> List["FieldReader"]:
        """Return a reader per object in a list, dropping non-object entries."""

        value = self._get(path)
        if value is None:
            return []
        if not isinstance(value, list):
            self._mismatch(path, "a list", value)
            return []
        readers = []
        for index, entry in enumerate(value):
            if isinstance(entry, dict):
                readers.append(FieldReader(entry, prefix=f"{path}[{index}]", warnings=self.warnings))
            else:
                self._mismatch(f"{path}[{index}]", "an object", entry)
        return readers

    def strings(self, path: str) -> List[str]:
        value = self._get(path)
        if value is None:
            return []
        if not isinstance(value, list):
            self._mismatch(path, "a list", value)
            return []
        return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]

    def is_list(self, path: str) -> bool:
        return isinstance(self._get(path), list)
