"""Logging setup shared by the studioflow CLI and Streamlit importer."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# pdfminer (under pdfplumber) and httpx (under supabase) log every page and request.
NOISY_LOGGERS = ("pdfminer", "httpx", "httpcore")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from ``level`` or ``LOG_LEVEL`` (default ``INFO``).

    Third-party loggers listed in ``NOISY_LOGGERS`` are held at WARNING unless
    the resolved level is DEBUG.
    """

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT)
    if resolved_level != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
