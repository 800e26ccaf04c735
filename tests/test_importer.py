"""Tests for the per-item transactional importer."""
import pytest

from studioflow.core.models import Done, Error, Extracting, ImportItem
from studioflow.processing.importer import MISSING_NAME_MESSAGE, import_batch, import_item
from studioflow.storage.memory import MemoryStore

from conftest import make_contract_payload, make_extras_payload, make_item, make_lead_payload


class FlakyStore(MemoryStore):
    """Fails the n-th insert into one table, or every document upload."""

    def __init__(self, fail_table=None, fail_on=1, fail_uploads=False):
        super().__init__()
        self.fail_table = fail_table
        self.fail_on = fail_on
        self.fail_uploads = fail_uploads
        self.calls = 0

    def insert(self, table, row):
        if table == self.fail_table:
            self.calls += 1
            if self.calls == self.fail_on:
                raise RuntimeError(f"{table} insert rejected")
        return super().insert(table, row)

    def upload_document(self, path, content, content_type="application/pdf"):
        if self.fail_uploads:
            raise RuntimeError("bucket unavailable")
        return super().upload_document(path, content, content_type)


def _lead_items():
    brides = ["Amanda", "Bianca", "Chloe", "Dana", "Erin"]
    return [
        make_item(
            make_lead_payload(bride=bride, groom="Sam", groom_last=f"Family{index}", wedding_date=f"2026-0{index + 1}-10",
                              filename=f"{bride.lower()}.pdf"),
            item_id=f"item-{index}",
        )
        for index, bride in enumerate(brides)
    ]


def test_related_failure_is_partial_and_batch_continues(caplog) -> None:
    store = FlakyStore(fail_table="quotes", fail_on=3)

    result = import_batch(store, _lead_items())

    assert result.succeeded == 4
    assert result.failed == 1
    outcome = result.per_item[2]
    assert outcome.status == "error"
    assert outcome.customer_id is not None
    assert "quotes insert rejected" in outcome.error
    assert len(store.tables["couples"]) == 5
    assert len(store.tables["quotes"]) == 4
    assert "chloe.pdf" in caplog.text


def test_primary_write_failure_has_no_customer() -> None:
    store = FlakyStore(fail_table="couples", fail_on=1)
    items = _lead_items()[:2]

    result = import_batch(store, items)

    assert (result.succeeded, result.failed) == (1, 1)
    assert result.per_item[0].customer_id is None
    assert result.per_item[1].status == "done"


def test_upload_failure_still_counts_as_done(caplog) -> None:
    store = FlakyStore(fail_uploads=True)
    caplog.set_level("WARNING")

    result = import_batch(store, [make_item(make_lead_payload())])

    assert result.succeeded == 1
    assert result.per_item[0].status == "done"
    assert "Document upload failed" in caplog.text


def test_unselected_and_unready_items_are_skipped(memory_store) -> None:
    ready = make_item(make_lead_payload(), item_id="a")
    unselected = make_item(make_lead_payload(bride="Bianca"), item_id="b", selected=False)
    pending = make_item(make_lead_payload(bride="Chloe"), item_id="c")
    extracting = ImportItem(item_id="c", document=pending.document, state=Extracting(), selected=True)

    result = import_batch(memory_store, [ready, unselected, extracting])

    assert [outcome.item_id for outcome in result.per_item] == ["a"]
    assert (result.succeeded, result.failed) == (1, 0)


def test_progress_callback_sees_each_transition(memory_store) -> None:
    seen = []

    import_batch(memory_store, [make_item(make_lead_payload())], on_update=lambda item: seen.append(item.status))

    assert seen == ["importing", "done"]


def test_contract_creates_couple_with_related_rows(memory_store, contract_payload) -> None:
    item = import_item(memory_store, make_item(contract_payload))

    assert isinstance(item.state, Done)
    couple = memory_store.get_couple(item.state.customer_id)
    assert couple["couple_name"] == "Amanda & Justin Kong"
    assert couple["status"] == "booked"
    assert couple["lead_source"] == "document_import"
    assert couple["notes"] == "Imported from contract.pdf"
    assert couple["contract_total"] == 3955
    assert couple["balance_owing"] == 3955

    contract = memory_store.select("contracts", couple_id=couple["id"])[0]
    assert contract["total"] == 3955
    assert contract["bride_first_name"] == "Amanda"
    installments = memory_store.select("contract_installments", contract_id=contract["id"])
    assert [row["installment_number"] for row in installments] == [1, 2]
    signatures = memory_store.select("contract_signatures", contract_id=contract["id"])
    assert signatures[0]["signer_name"] == "Amanda Lee"
    assert f"{couple['id']}/contract-contract.pdf" in memory_store.blobs


def test_contract_reimport_keeps_known_total(memory_store) -> None:
    existing = memory_store.insert(
        "couples",
        {"couple_name": "Amanda & Justin Kong", "wedding_date": "2026-09-12", "contract_total": 3955, "status": "booked"},
    )
    payload = make_contract_payload(financials={"total": None}, installments=[])

    item = import_item(memory_store, make_item(payload))

    assert item.state.customer_id == existing["id"]
    couple = memory_store.get_couple(existing["id"])
    assert couple["contract_total"] == 3955
    assert couple["photographer"] == "Marco"
    assert len(memory_store.tables["couples"]) == 1


def test_extras_quote_updates_totals_and_records_order(memory_store, extras_payload) -> None:
    existing = memory_store.insert(
        "couples",
        {"couple_name": "Amanda & Justin Kong", "contract_total": 3955, "total_paid": 500, "balance_owing": 3455},
    )

    result = import_batch(memory_store, [make_item(extras_payload)])

    assert result.per_item[0].customer_id == existing["id"]
    couple = memory_store.get_couple(existing["id"])
    assert couple["extras_total"] == 850
    assert couple["balance_owing"] == 4305
    order = memory_store.select("extras_orders", couple_id=existing["id"])[0]
    assert order["order_type"] == "frames_albums"
    assert order["status"] == "confirmed"
    assert order["notes"] == "Inclusions: Online proofing gallery; USB"
    assert f"{existing['id']}/extras-extras.pdf" in memory_store.blobs


def test_lead_quote_blob_path_has_no_prefix(memory_store, lead_payload) -> None:
    item = import_item(memory_store, make_item(lead_payload))

    assert f"{item.state.customer_id}/lead.pdf" in memory_store.blobs
    quote = memory_store.select("quotes", couple_id=item.state.customer_id)[0]
    assert quote["package_name"] == "Gold Collection"


def test_failed_items_keep_their_payload_for_retry(lead_payload) -> None:
    store = FlakyStore(fail_table="couples", fail_on=1)

    item = import_item(store, make_item(lead_payload))

    assert isinstance(item.state, Error)
    assert not item.state.partial
    assert item.state.payload == lead_payload


def test_callback_errors_do_not_escape(memory_store) -> None:
    def _boom(item):
        raise RuntimeError("ui went away")

    result = import_batch(memory_store, [make_item(make_lead_payload())], on_update=_boom)

    assert result.succeeded == 1


def test_nameless_payload_fails_without_writing(memory_store, caplog) -> None:
    caplog.set_level("WARNING")
    item = make_item(make_extras_payload(couple_name=""), item_id="blank")

    result = import_batch(memory_store, [item, make_item(make_extras_payload(), item_id="named")])

    assert (result.succeeded, result.failed) == (1, 1)
    assert result.per_item[0].error == MISSING_NAME_MESSAGE
    assert result.per_item[0].customer_id is None
    assert len(memory_store.tables["couples"]) == 1
    assert memory_store.tables["couples"][0]["couple_name"] == "Amanda & Justin Kong"
    assert len(memory_store.tables["extras_orders"]) == 1
    assert "no couple name was extracted" in caplog.text


@pytest.mark.parametrize("factory", [make_contract_payload, make_extras_payload, make_lead_payload])
def test_every_document_type_imports_into_an_empty_store(memory_store, factory) -> None:
    result = import_batch(memory_store, [make_item(factory())])

    assert result.succeeded == 1
