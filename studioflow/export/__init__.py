"""Report rows and the sinks that receive them."""
from studioflow.export.sinks import push_to_google_sheets, resolve_sheets_target, write_csv, write_excel
from studioflow.export.templates import (
    PAYLOAD_HEADERS,
    REPORT_HEADERS,
    outcome_to_row,
    outcomes_to_rows,
    payload_to_row,
    payloads_to_rows,
)

__all__ = [
    "PAYLOAD_HEADERS",
    "REPORT_HEADERS",
    "outcome_to_row",
    "outcomes_to_rows",
    "payload_to_row",
    "payloads_to_rows",
    "push_to_google_sheets",
    "resolve_sheets_target",
    "write_csv",
    "write_excel",
]
