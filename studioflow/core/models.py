"""Data models for couples, extracted documents, and import queue items."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union


class DocumentType(str, Enum):
    CONTRACT = "contract"
    EXTRAS_QUOTE = "extras-quote"
    LEAD_QUOTE = "lead-quote"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CoupleStatus(str, Enum):
    PROSPECT = "prospect"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PackageType(str, Enum):
    PHOTO_ONLY = "photo_only"
    PHOTO_VIDEO = "photo_video"


class MatchTier(str, Enum):
    """Heuristic rules of the record matcher, strongest first."""

    DATE_PRIMARY_PREFIX = "date_primary_prefix"
    DATE_SECONDARY_SUBSTRING = "date_secondary_substring"
    PRIMARY_PREFIX_UNIQUE = "primary_prefix_unique"
    EXACT_NAME = "exact_name"
    FUZZY_TOKEN = "fuzzy_token"


@dataclass
class Party:
    """One half of a couple."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class Couple:
    """A booked or prospective client pair as stored in the ``couples`` table."""

    couple_name: str
    id: Optional[str] = None
    bride: Party = field(default_factory=Party)
    groom: Party = field(default_factory=Party)
    wedding_date: Optional[str] = None
    wedding_year: Optional[int] = None
    ceremony_venue: Optional[str] = None
    reception_venue: Optional[str] = None
    package_type: Optional[str] = None
    coverage_hours: Optional[int] = None
    photographer: Optional[str] = None
    contract_total: Optional[float] = None
    extras_total: Optional[float] = None
    total_paid: Optional[float] = None
    balance_owing: Optional[float] = None
    status: str = CoupleStatus.PROSPECT.value
    lead_source: Optional[str] = None
    booked_date: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Couple":
        """Build a couple from a flat table row, ignoring unknown columns."""

        return cls(
            id=row.get("id"),
            couple_name=row.get("couple_name") or "",
            bride=Party(row.get("bride_name"), row.get("bride_email"), row.get("bride_phone")),
            groom=Party(row.get("groom_name"), row.get("groom_email"), row.get("groom_phone")),
            wedding_date=row.get("wedding_date"),
            wedding_year=row.get("wedding_year"),
            ceremony_venue=row.get("ceremony_venue"),
            reception_venue=row.get("reception_venue"),
            package_type=row.get("package_type"),
            coverage_hours=row.get("coverage_hours"),
            photographer=row.get("photographer"),
            contract_total=row.get("contract_total"),
            extras_total=row.get("extras_total"),
            total_paid=row.get("total_paid"),
            balance_owing=row.get("balance_owing"),
            status=row.get("status") or CoupleStatus.PROSPECT.value,
            lead_source=row.get("lead_source"),
            booked_date=row.get("booked_date"),
            notes=row.get("notes"),
        )

    def to_row(self) -> Dict[str, Any]:
        """Flatten into ``couples`` columns; ``id`` is left out when unset."""

        row = asdict(self)
        bride = row.pop("bride")
        groom = row.pop("groom")
        for prefix, party in (("bride", bride), ("groom", groom)):
            for key, value in party.items():
                row[f"{prefix}_{key}"] = value
        if row.get("id") is None:
            row.pop("id")
        return row

    def derived_balance(self) -> Optional[float]:
        """Return ``contract + extras - paid`` when both totals are known and positive."""

        contract = _as_amount(self.contract_total)
        extras = _as_amount(self.extras_total)
        if contract <= 0 or extras <= 0:
            return None
        return round(contract + extras - _as_amount(self.total_paid), 2)


def _as_amount(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class ExtractedPayload:
    """Oracle-shaped fields for one document plus their confidence assessment."""

    document_type: str
    filename: str
    fields: Dict[str, Any]
    confidence: str = Confidence.LOW.value
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MatchIdentity:
    """Who a document appears to be about, as far as the matcher is concerned."""

    display_name: str = ""
    primary_first_name: str = ""
    secondary_first_name: str = ""
    wedding_date: Optional[str] = None


@dataclass(frozen=True)
class MatchCandidate:
    """An existing couple row plus the tier of heuristic that found it."""

    record: Dict[str, Any]
    tier: MatchTier

    @property
    def customer_id(self) -> str:
        return self.record["id"]


@dataclass(frozen=True)
class SourceDocument:
    """Raw uploaded document bytes and the name they arrived under."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"

    @classmethod
    def from_path(cls, path: Path) -> "SourceDocument":
        return cls(filename=path.name, content=path.read_bytes())


@dataclass(frozen=True)
class Extracting:
    status: ClassVar[str] = "extracting"


@dataclass(frozen=True)
class Ready:
    payload: ExtractedPayload
    status: ClassVar[str] = "ready"


@dataclass(frozen=True)
class Importing:
    payload: ExtractedPayload
    status: ClassVar[str] = "importing"


@dataclass(frozen=True)
class Done:
    customer_id: str
    status: ClassVar[str] = "done"


@dataclass(frozen=True)
class Error:
    """A failed item; ``customer_id`` is set when the couple row was committed."""

    message: str
    customer_id: Optional[str] = None
    payload: Optional[ExtractedPayload] = None
    status: ClassVar[str] = "error"

    @property
    def partial(self) -> bool:
        return self.customer_id is not None


ItemState = Union[Extracting, Ready, Importing, Done, Error]


@dataclass(frozen=True)
class ImportItem:
    """One document in the import queue, addressed by a stable id."""

    item_id: str
    document: SourceDocument
    state: ItemState = field(default_factory=Extracting)
    selected: bool = False

    @property
    def status(self) -> str:
        return self.state.status

    @property
    def payload(self) -> Optional[ExtractedPayload]:
        return getattr(self.state, "payload", None)


@dataclass
class ItemOutcome:
    """Per-item import result reported back to the caller."""

    item_id: str
    filename: str
    status: str
    customer_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Summary of one ``import_batch`` run."""

    succeeded: int = 0
    failed: int = 0
    per_item: List[ItemOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
