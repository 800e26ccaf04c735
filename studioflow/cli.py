"""Command line entry point for extracting and importing studio PDFs."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List

from studioflow.core.logging import configure_logging
from studioflow.core.models import DocumentType, Error, ItemOutcome, SourceDocument
from studioflow.export.sinks import push_to_google_sheets, resolve_sheets_target, write_csv, write_excel
from studioflow.export.templates import PAYLOAD_HEADERS, REPORT_HEADERS, outcomes_to_rows, payloads_to_rows
from studioflow.ingestion.loader import load_documents
from studioflow.processing.extract import extract_documents
from studioflow.review.queue import ImportQueue
from studioflow.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = [document_type.value for document_type in DocumentType]


def _add_sink_arguments(parser: argparse.ArgumentParser, default_excel: Path) -> None:
    parser.add_argument(
        "--sink",
        choices=["csv", "sheets", "excel"],
        default="csv",
        help="Where to forward report rows after writing the CSV",
    )
    parser.add_argument(
        "--spreadsheet-id",
        help="Google Sheets spreadsheet ID for the sheets sink",
    )
    parser.add_argument(
        "--worksheet",
        default="Sheet1",
        help="Worksheet title inside the Google Sheets document",
    )
    parser.add_argument(
        "--service-account",
        type=Path,
        help="Path to a Google service account JSON key used for Sheets pushes",
    )
    parser.add_argument(
        "--excel-output",
        type=Path,
        default=default_excel,
        help="Excel file to write when --sink=excel",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``studioflow`` command."""

    parser = argparse.ArgumentParser(description="Extract and import wedding studio documents")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser("extract", help="Extract fields from PDFs without importing")
    extract_parser.add_argument("--type", dest="document_type", choices=DOCUMENT_TYPES, required=True)
    extract_parser.add_argument("paths", nargs="+", type=Path, help="PDF files or directories of PDFs")
    extract_parser.add_argument(
        "--output",
        type=Path,
        default=Path("output/extracted_documents.csv"),
        help="CSV file to write extracted rows to",
    )
    _add_sink_arguments(extract_parser, Path("output/extracted_documents.xlsx"))

    import_parser = subparsers.add_parser("import", help="Extract PDFs and import them into the studio database")
    import_parser.add_argument("--type", dest="document_type", choices=DOCUMENT_TYPES, required=True)
    import_parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("documents"),
        help="Directory holding the PDFs to import",
    )
    import_parser.add_argument(
        "--all",
        dest="select_all",
        action="store_true",
        help="Import every extracted document, including low-confidence ones",
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Import into an in-memory store instead of Supabase",
    )
    import_parser.add_argument(
        "--report",
        type=Path,
        default=Path("output/import_report.csv"),
        help="CSV file to write per-item outcomes to",
    )
    _add_sink_arguments(import_parser, Path("output/import_report.xlsx"))
    return parser


def _collect_documents(paths: List[Path]) -> List[SourceDocument]:
    documents: List[SourceDocument] = []
    for path in paths:
        if path.is_dir():
            found, alerts = load_documents(path)
            for alert in alerts:
                logger.warning(alert)
            documents.extend(found)
        else:
            documents.append(SourceDocument.from_path(path))
    return documents


def _emit(rows: List[Dict[str, Any]], output_path: Path, headers: List[str], args: argparse.Namespace) -> None:
    write_csv(rows, output_path, headers)
    logger.info("Wrote CSV output to %s", output_path)
    if args.sink == "excel":
        write_excel(rows, args.excel_output, headers=headers)
        logger.info("Wrote Excel output to %s", args.excel_output)
    elif args.sink == "sheets":
        target = resolve_sheets_target(args.spreadsheet_id, args.worksheet, args.service_account)
        push_to_google_sheets(
            rows,
            spreadsheet_id=target["spreadsheet_id"],
            worksheet_title=target["worksheet_title"],
            service_account_path=target["service_account_path"],
            headers=headers,
        )


def _open_store(dry_run: bool):
    if dry_run:
        return MemoryStore()
    from studioflow.storage.supabase_store import SupabaseStore

    return SupabaseStore.from_config()


def _extraction_failures(queue: ImportQueue) -> List[ItemOutcome]:
    """Items that never reached review; the batch import does not see them."""

    return [
        ItemOutcome(
            item_id=item.item_id,
            filename=item.document.filename,
            status=item.status,
            error=item.state.message,
        )
        for item in queue.items()
        if isinstance(item.state, Error)
    ]


def run_extract(args: argparse.Namespace) -> int:
    documents = _collect_documents(args.paths)
    payloads = extract_documents(documents, args.document_type)
    _emit(payloads_to_rows(payloads), args.output, PAYLOAD_HEADERS, args)
    print(f"Extracted {len(payloads)} documents to {args.output}")
    return 0


def run_import(args: argparse.Namespace) -> int:
    documents, alerts = load_documents(args.data_dir)
    for alert in alerts:
        logger.warning(alert)
    if not documents:
        message = f"No PDF documents found under {args.data_dir}."
        logger.error(message)
        raise ValueError(message)

    store = _open_store(args.dry_run)
    queue = ImportQueue()
    for document in documents:
        queue.add(document)
    queue.extract_all(args.document_type)
    extraction_failures = _extraction_failures(queue)
    if args.select_all:
        queue.select_all_ready()
    skipped = len(queue.ready_items()) - len(queue.selected_items())
    if skipped:
        logger.warning("Skipping %d low-confidence documents; pass --all to import them", skipped)

    result = queue.run_import(store)
    outcomes = result.per_item + extraction_failures
    failed = result.failed + len(extraction_failures)
    _emit(outcomes_to_rows(outcomes), args.report, REPORT_HEADERS, args)
    print(f"Imported {result.succeeded}, failed {failed}")
    return 1 if failed else 0


def main() -> None:
    """Entrypoint for the ``studioflow`` command."""

    configure_logging()
    args = build_parser().parse_args()
    handler = run_extract if args.command == "extract" else run_import
    exit_code = handler(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
