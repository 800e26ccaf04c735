"""Tests for document extraction, normalization, and local failure recovery."""
import pytest

import importlib

extract_module = importlib.import_module("studioflow.processing.extract")
from studioflow.core.errors import EmptyDocument, OracleMalformedResponse
from studioflow.core.models import SourceDocument
from studioflow.processing.extract import extract, extract_documents, extract_or_empty
from studioflow.processing.oracle import decode_response

from conftest import CONTRACT_RAW, SAMPLE_QUOTE, FakeOracle


@pytest.fixture
def fixed_text(monkeypatch: pytest.MonkeyPatch):
    def _set(text: str) -> None:
        monkeypatch.setattr(extract_module, "extract_text", lambda content: text)

    return _set


def test_contract_extraction_normalizes_and_scores(fixed_text) -> None:
    fixed_text("contract text")

    payload = extract(b"%PDF", "contract", filename="kong.pdf", oracle=FakeOracle(CONTRACT_RAW))

    assert payload.document_type == "contract"
    assert payload.filename == "kong.pdf"
    assert payload.confidence == "high"
    assert payload.warnings == []
    assert payload.fields["photos"]["usb_dropbox_delivery"] is True
    assert payload.fields["locations"]["loc_park"] is True
    assert payload.fields["installments"][1]["due_date"] is None
    assert payload.fields["financials"]["total"] == 3955


def test_wrongly_typed_fields_become_warnings(fixed_text) -> None:
    fixed_text("extras text")
    raw = {"couple_name": "Amanda & Justin Kong", "items": "frames", "total": "lots", "inclusions": ["USB"]}

    payload = extract(b"%PDF", "extras-quote", filename="extras.pdf", oracle=FakeOracle(raw))

    assert payload.fields["items"] == []
    assert payload.fields["total"] is None
    assert payload.confidence == "medium"
    assert "Could not extract any items" in payload.warnings
    assert "Ignored items: expected a list, got str" in payload.warnings
    assert "Ignored total: expected a number, got str" in payload.warnings


def test_malformed_oracle_answer_raises(fixed_text) -> None:
    fixed_text("contract text")

    with pytest.raises(OracleMalformedResponse):
        extract(b"%PDF", "contract", oracle=FakeOracle(error=OracleMalformedResponse("invalid JSON")))


def test_extract_or_empty_recovers_with_explicit_warning(fixed_text, caplog) -> None:
    fixed_text("contract text")
    caplog.set_level("WARNING")

    payload = extract_or_empty(
        b"%PDF", "contract", filename="bad.pdf", oracle=FakeOracle(error=OracleMalformedResponse("invalid JSON"))
    )

    assert payload.confidence == "low"
    assert payload.warnings == ["invalid JSON"]
    assert payload.fields["couple"]["bride_first_name"] == ""
    assert "bad.pdf" in caplog.text


def test_image_only_pdf_recovers_to_empty_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    def _empty(content):
        raise EmptyDocument("PDF appears to be empty or image-based")

    monkeypatch.setattr(extract_module, "extract_text", _empty)

    payload = extract_or_empty(b"%PDF", "extras-quote", filename="scan.pdf", oracle=FakeOracle({}))

    assert payload.confidence == "low"
    assert payload.warnings == ["PDF appears to be empty or image-based"]
    assert payload.fields["items"] == []


def test_lead_quote_falls_back_to_heuristics_when_oracle_disabled(fixed_text) -> None:
    fixed_text(SAMPLE_QUOTE)

    payload = extract(b"%PDF", "lead-quote", filename="quote.pdf")

    assert payload.confidence == "high"
    assert payload.fields["couple_name"] == "Amanda & Justin Kong"
    assert payload.fields["wedding_year"] == 2026
    assert payload.fields["total"] == 4520.0


def test_contract_without_oracle_is_empty_not_fatal(fixed_text) -> None:
    fixed_text("contract text")

    payload = extract_or_empty(b"%PDF", "contract", filename="contract.pdf")

    assert payload.confidence == "low"
    assert "AI extraction is disabled" in payload.warnings[0]


def test_extract_documents_keeps_input_order(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(extract_module, "extract_text", lambda content: content.decode())

    class EchoOracle:
        def extract_json(self, prompt, text):
            return {"couple_name": text, "items": [{"name": "Frame"}], "total": 100, "inclusions": ["USB"]}

    documents = [SourceDocument(filename=f"{name}.pdf", content=name.encode()) for name in ("ann", "bea", "cat", "dee")]

    payloads = extract_documents(documents, "extras-quote", oracle=EchoOracle(), max_workers=3)

    assert [payload.filename for payload in payloads] == ["ann.pdf", "bea.pdf", "cat.pdf", "dee.pdf"]
    assert [payload.fields["couple_name"] for payload in payloads] == ["ann", "bea", "cat", "dee"]


def test_non_finite_oracle_numbers_become_warnings(fixed_text) -> None:
    fixed_text("contract text")
    raw = decode_response(
        '{"couple": {"bride_first_name": "Amanda"}, '
        '"installments": [{"installment_number": NaN, "amount": 500}], '
        '"financials": {"total": Infinity}}'
    )

    payload = extract_or_empty(b"%PDF", "contract", filename="nan.pdf", oracle=FakeOracle(raw))

    assert payload.fields["financials"]["total"] == 0
    assert payload.fields["installments"][0]["installment_number"] == 1
    assert "Ignored financials.total: expected a finite number, got float" in payload.warnings
    assert any("installment_number: expected a finite number" in warning for warning in payload.warnings)
