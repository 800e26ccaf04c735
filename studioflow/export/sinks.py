"""Destinations for report rows: CSV, Excel workbooks, and Google Sheets."""
from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from studioflow.core.utils import load_env_file

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_ACCOUNT_PATHS = [
    Path("secrets/service_account.json"),
    Path("credentials/service_account.json"),
]
DEFAULT_SHEETS_ENV_FILE = Path("secrets/sheets.env")


def ensure_output_dir(output_path: Path) -> None:
    """Create parent folders for sink outputs when missing."""

    output_path.parent.mkdir(parents=True, exist_ok=True)


def write_csv(rows: Iterable[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
    """Write rows to a CSV file with a fixed header order."""

    rows = list(rows)
    ensure_output_dir(output_path)
    with output_path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _column_order(rows: List[Dict[str, Any]], headers: Optional[List[str]]) -> List[str]:
    if headers:
        return list(headers)
    return list(rows[0].keys()) if rows else []


def write_excel(
    rows: Iterable[Dict[str, Any]],
    output_path: Path,
    sheet_title: str = "import_report",
    headers: Optional[List[str]] = None,
) -> None:
    """Write rows to an Excel workbook using openpyxl.

    Columns follow ``headers`` when given, otherwise the first row's keys. With
    neither rows nor headers there is nothing to write.
    """

    rows = list(rows)
    columns = _column_order(rows, headers)
    if not columns:
        return

    try:
        from openpyxl import Workbook
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise ImportError("openpyxl is required for Excel sinks") from exc

    ensure_output_dir(output_path)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title
    sheet.append(columns)
    for row in rows:
        sheet.append([row.get(column, "") for column in columns])
    workbook.save(output_path)


def _default_service_account_path() -> Optional[Path]:
    for candidate in DEFAULT_SERVICE_ACCOUNT_PATHS:
        if candidate.exists():
            return candidate
    return None


def resolve_sheets_target(
    spreadsheet_id: Optional[str],
    worksheet_title: str = "Sheet1",
    explicit_account_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """Work out where a Sheets push goes, reading ``secrets/sheets.env`` if present."""

    load_env_file(Path(os.getenv("GOOGLE_SHEETS_ENV_FILE", DEFAULT_SHEETS_ENV_FILE)))
    spreadsheet_id = spreadsheet_id or os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID")
    if not spreadsheet_id:
        raise ValueError("spreadsheet_id is required when sink='sheets'")

    account_env = os.getenv("GOOGLE_SHEETS_SERVICE_ACCOUNT")
    account_path = explicit_account_path or (Path(account_env) if account_env else _default_service_account_path())
    if not account_path:
        raise ValueError(
            "Provide --service-account pointing to your Google credentials or place a file at "
            f"{DEFAULT_SERVICE_ACCOUNT_PATHS[0]}"
        )

    return {
        "spreadsheet_id": spreadsheet_id,
        "worksheet_title": worksheet_title,
        "service_account_path": account_path,
    }


def push_to_google_sheets(
    rows: Iterable[Dict[str, Any]],
    spreadsheet_id: str,
    worksheet_title: str = "Sheet1",
    service_account_path: Path | None = None,
    headers: Optional[List[str]] = None,
) -> None:
    """Replace a Google Sheets worksheet's contents with ``rows`` using a service account."""

    rows = list(rows)
    columns = _column_order(rows, headers)
    if not columns:
        return

    try:
        import gspread
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise ImportError("gspread is required for Google Sheets sinks") from exc

    client = (
        gspread.service_account(filename=str(service_account_path))
        if service_account_path
        else gspread.service_account()
    )
    worksheet = client.open_by_key(spreadsheet_id).worksheet(worksheet_title)
    worksheet.clear()
    worksheet.append_rows([columns] + [[row.get(column, "") for column in columns] for row in rows])
    logger.info("Pushed %d rows to Google Sheets document %s (worksheet %s)", len(rows), spreadsheet_id, worksheet_title)
