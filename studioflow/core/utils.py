"""Configuration helpers shared by the oracle, storage, and UI layers."""
import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def get_config_value(key: str, default: str = "") -> str:
    """Get configuration value from Streamlit secrets or environment variables.

    Checks Streamlit secrets first (for the hosted importer page), then falls
    back to environment variables (for the CLI and local development).
    """
    try:
        import streamlit as st
        if hasattr(st, "secrets") and key in st.secrets:
            return str(st.secrets[key])
    except (ImportError, FileNotFoundError, KeyError):
        pass

    return os.getenv(key, default)


def config_flag(key: str, default: bool = False) -> bool:
    """Interpret a configuration value as an on/off switch."""

    raw = get_config_value(key, "1" if default else "0").strip().lower()
    return raw in {"1", "true", "yes", "on"}


def config_number(key: str, default: Union[int, float]) -> Union[int, float]:
    """Read a numeric setting, keeping ``default``'s type; bad values fall back to it."""

    raw = get_config_value(key, "").strip()
    if not raw:
        return default
    try:
        return type(default)(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", key, raw, default)
        return default


def load_env_file(path: Path) -> None:
    """Load ``KEY=value`` lines into the environment without overriding it."""
    if not path.exists():
        return

    try:
        with path.open(encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if not key or key in os.environ:
                    continue
                os.environ[key] = value.strip().strip('"').strip("'")
    except OSError as exc:
        logger.debug("Could not load env file %s: %s", path, exc)
