"""Extraction, matching, merging, and import of studio documents."""
from studioflow.processing.extract import extract, extract_documents, extract_or_empty
from studioflow.processing.importer import import_batch, import_item
from studioflow.processing.ledger import couple_summary, record_payment, transition_status
from studioflow.processing.matching import match_couple
from studioflow.processing.merge import merge_fields, new_couple_row, reconcile_balance
from studioflow.processing.oracle import ExtractionOracle

__all__ = [
    "ExtractionOracle",
    "couple_summary",
    "extract",
    "extract_documents",
    "extract_or_empty",
    "import_batch",
    "import_item",
    "match_couple",
    "merge_fields",
    "new_couple_row",
    "reconcile_balance",
    "record_payment",
    "transition_status",
]
