"""Tests for the non-regression merge policy and balance reconciliation."""
import pytest

from studioflow.processing.merge import (
    couple_fields_from_contract,
    is_meaningful,
    merge_fields,
    merged_couple_updates,
    new_couple_row,
    reconcile_balance,
)


@pytest.mark.parametrize(
    "value,expected",
    [(None, False), ("", False), ("   ", False), (0, False), (0.0, False), ([], False), ({}, False),
     (False, False), ("Amanda", True), (3955, True), (-10, True), (["USB"], True), (True, True)],
)
def test_is_meaningful(value, expected) -> None:
    assert is_meaningful(value) is expected


def test_empty_extraction_never_erases_existing_values() -> None:
    existing = {"couple_name": "Amanda & Justin Kong", "contract_total": 3955, "photographer": "Marco"}

    updates = merge_fields(existing, {"contract_total": 0, "photographer": "", "bride_email": None})

    assert updates == {}


def test_present_totals_replace_older_ones_even_when_lower() -> None:
    existing = {"contract_total": 3955}

    assert merge_fields(existing, {"contract_total": 3500}) == {"contract_total": 3500}


def test_couple_name_is_only_set_on_creation() -> None:
    existing = {"couple_name": "Amanda & Justin Kong"}

    assert merge_fields(existing, {"couple_name": "Amanda & Justin"}) == {}
    assert merge_fields({"couple_name": ""}, {"couple_name": "Amanda & Justin"}) == {"couple_name": "Amanda & Justin"}


def test_new_couple_row_defaults() -> None:
    row = new_couple_row({"couple_name": "", "contract_total": 3955, "bride_email": ""}, "kong.pdf")

    assert row["couple_name"] == "Unnamed Couple"
    assert row["status"] == "booked"
    assert row["lead_source"] == "document_import"
    assert row["notes"] == "Imported from kong.pdf"
    assert row["balance_owing"] == 3955
    assert "bride_email" not in row


def test_balance_recomputed_when_both_totals_known() -> None:
    assert reconcile_balance({"contract_total": 3955, "extras_total": 850, "total_paid": 500, "balance_owing": 1}) == 4305


def test_balance_fallback_is_kept_without_extras() -> None:
    assert reconcile_balance({"contract_total": 3955, "total_paid": 500, "balance_owing": 2000}) == 2000
    assert reconcile_balance({"contract_total": 3955, "total_paid": 500}) == 3455
    assert reconcile_balance({"extras_total": 850}) is None


def test_merged_updates_include_reconciled_balance() -> None:
    existing = {"couple_name": "Amanda & Justin Kong", "contract_total": 3955, "total_paid": 500, "balance_owing": 3455}

    updates = merged_couple_updates(existing, {"couple_name": "Amanda & Justin Kong", "extras_total": 850})

    assert updates == {"extras_total": 850, "balance_owing": 4305}


def test_contract_mapping_derives_display_name_and_year(contract_payload) -> None:
    fields = couple_fields_from_contract(contract_payload.fields)

    assert fields["couple_name"] == "Amanda & Justin Kong"
    assert fields["bride_name"] == "Amanda Lee"
    assert fields["groom_name"] == "Justin Kong"
    assert fields["wedding_year"] == 2026
    assert fields["contract_total"] == 3955
    assert fields["photographer"] == "Marco"
