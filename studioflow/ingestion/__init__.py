"""Document ingestion: PDF text, typed field access, and heuristic parsing."""
from studioflow.ingestion.coercion import FieldReader, normalize_date, parse_money
from studioflow.ingestion.loader import load_documents
from studioflow.ingestion.pdf_text import extract_page_texts, extract_text
from studioflow.ingestion.quotes import parse_quote_text

__all__ = [
    "FieldReader",
    "normalize_date",
    "parse_money",
    "load_documents",
    "extract_page_texts",
    "extract_text",
    "parse_quote_text",
]
