"""HTTP adapter for the language-model field extraction service."""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from studioflow.core.errors import OracleMalformedResponse, OracleUnavailable
from studioflow.core.utils import config_flag, config_number, get_config_value, load_env_file

logger = logging.getLogger(__name__)
DEFAULT_SECRET_FILE = Path(__file__).resolve().parents[1] / "secrets" / "anthropic.env"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
API_VERSION = "2023-06-01"
_AI_ENV_LOADED = False

FENCE_START = re.compile(r"^```(?:json)?\s*\n?", re.MULTILINE)
FENCE_END = re.compile(r"\n?```\s*$", re.MULTILINE)


def _ensure_ai_env() -> None:
    """Load AI credentials from a local secrets file once per process."""

    global _AI_ENV_LOADED
    if _AI_ENV_LOADED:
        return

    _AI_ENV_LOADED = True
    secret_location = os.getenv("AI_SECRET_FILE")
    path = Path(secret_location).expanduser() if secret_location else DEFAULT_SECRET_FILE
    load_env_file(path)


def decode_response(text: str) -> Dict[str, Any]:
    """Decode the oracle's answer into a dict, tolerating markdown fences."""

    cleaned = FENCE_END.sub("", FENCE_START.sub("", text or "", count=1)).strip()
    if not cleaned:
        raise OracleMalformedResponse("Extraction returned an empty response")
    try:
        decoded = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise OracleMalformedResponse(f"Extraction returned invalid JSON: {exc.msg}") from exc
    if not isinstance(decoded, dict):
        raise OracleMalformedResponse("Extraction returned JSON that is not an object")
    return decoded


class ExtractionOracle:
    """Sends document text plus a schema prompt to the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        _ensure_ai_env()
        self.api_key = api_key or get_config_value("ANTHROPIC_API_KEY") or None
        self.model = model or get_config_value("ANTHROPIC_MODEL", DEFAULT_MODEL)
        self.base_url = (base_url or get_config_value("ANTHROPIC_BASE_URL", "https://api.anthropic.com")).rstrip("/")
        self.max_tokens = config_number("ORACLE_MAX_TOKENS", 4096)
        self.timeout = config_number("ORACLE_TIMEOUT", 120.0)
        self.disabled = config_flag("AI_EXTRACTION_DISABLED")
        self.session = session or (requests.Session() if self.api_key else None)

    @property
    def available(self) -> bool:
        return not self.disabled and self.session is not None and bool(self.api_key)

    def complete(self, prompt: str, text: str) -> str:
        """Return the model's raw text answer for ``prompt`` applied to ``text``."""

        if self.disabled:
            raise OracleUnavailable("AI extraction is disabled (AI_EXTRACTION_DISABLED=1)")
        if not self.available:
            raise OracleUnavailable("ANTHROPIC_API_KEY is not configured")

        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": f"{prompt}\n\nDocument text:\n{text}"}],
        }
        try:
            response = self.session.post(
                f"{self.base_url}/v1/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                    "content-type": "application/json",
                },
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise OracleUnavailable(f"Extraction request failed: {exc}") from exc

        blocks = body.get("content") if isinstance(body, dict) else None
        answer = "".join(
            block.get("text", "")
            for block in blocks or []
            if isinstance(block, dict) and block.get("type") == "text"
        )
        logger.info("Oracle response length: %d chars", len(answer))
        return answer

    def extract_json(self, prompt: str, text: str) -> Dict[str, Any]:
        return decode_response(self.complete(prompt, text))
