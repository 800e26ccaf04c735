"""Import queue shared by the CLI and the Streamlit review page."""
from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from studioflow.core.errors import ExtractionFailure
from studioflow.core.models import (
    BatchResult,
    Confidence,
    Done,
    Error,
    ExtractedPayload,
    Extracting,
    ImportItem,
    ItemState,
    Ready,
    SourceDocument,
)
from studioflow.core.quality import score_payload
from studioflow.processing.extract import empty_payload, extract
from studioflow.processing.importer import import_batch, notify_update
from studioflow.processing.oracle import ExtractionOracle
from studioflow.processing.schemas import payload_identity

logger = logging.getLogger(__name__)

SCORER_WARNING_PREFIX = "Could not extract "


def should_auto_select(payload: ExtractedPayload) -> bool:
    """Confident payloads that name a couple are pre-selected for import."""

    return payload.confidence != Confidence.LOW.value and bool(payload_identity(payload).display_name)


class ImportQueue:
    """Items keyed by stable ids; every change replaces the item by value.

    Concurrent extraction feeds results back through ``set_state`` by id, so
    removing or reordering items while extraction runs never misroutes a
    result.
    """

    def __init__(self) -> None:
        self._items: Dict[str, ImportItem] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._items)

    def add(self, document: SourceDocument) -> str:
        item_id = uuid.uuid4().hex
        with self._lock:
            self._items[item_id] = ImportItem(item_id=item_id, document=document)
        return item_id

    def get(self, item_id: str) -> ImportItem:
        return self._items[item_id]

    def items(self) -> List[ImportItem]:
        with self._lock:
            return list(self._items.values())

    def _put(self, item: ImportItem) -> Optional[ImportItem]:
        with self._lock:
            if item.item_id not in self._items:
                logger.debug("Dropping update for removed item %s", item.item_id)
                return None
            self._items[item.item_id] = item
            return item

    def set_state(self, item_id: str, state: ItemState) -> Optional[ImportItem]:
        """Replace an item's state; updates for removed ids are dropped."""

        with self._lock:
            item = self._items.get(item_id)
        if item is None:
            logger.debug("Dropping state %s for removed item %s", state.status, item_id)
            return None
        return self._put(replace(item, state=state))

    def mark_extracted(self, item_id: str, payload: ExtractedPayload) -> Optional[ImportItem]:
        with self._lock:
            item = self._items.get(item_id)
        if item is None:
            return None
        return self._put(replace(item, state=Ready(payload), selected=should_auto_select(payload)))

    def toggle(self, item_id: str, selected: Optional[bool] = None) -> ImportItem:
        item = self.get(item_id)
        flag = (not item.selected) if selected is None else selected
        return self._put(replace(item, selected=flag))

    def select_all_ready(self, selected: bool = True) -> None:
        for item in self.items():
            if isinstance(item.state, Ready):
                self._put(replace(item, selected=selected))

    def ready_items(self) -> List[ImportItem]:
        return [item for item in self.items() if isinstance(item.state, Ready)]

    def selected_items(self) -> List[ImportItem]:
        return [item for item in self.ready_items() if item.selected]

    def counts(self) -> Dict[str, int]:
        tally = Counter(item.status for item in self.items())
        return {status: tally.get(status, 0) for status in ("extracting", "ready", "importing", "done", "error")}

    def remove(self, item_id: str) -> None:
        with self._lock:
            self._items.pop(item_id, None)

    def clear_done(self) -> None:
        with self._lock:
            self._items = {key: item for key, item in self._items.items() if not isinstance(item.state, Done)}

    def clear(self) -> None:
        with self._lock:
            self._items = {}

    def retry_failed(self) -> int:
        """Put failed items back in the queue: Ready when a payload survived, else re-extract."""

        retried = 0
        for item in self.items():
            if not isinstance(item.state, Error) or item.state.partial:
                continue
            state = Ready(item.state.payload) if item.state.payload is not None else Extracting()
            self._put(replace(item, state=state))
            retried += 1
        return retried

    def extract_all(
        self,
        document_type: str,
        oracle: Optional[ExtractionOracle] = None,
        max_workers: int = 4,
        on_update: Optional[Callable[[ImportItem], None]] = None,
    ) -> List[ImportItem]:
        """Extract every item still in ``Extracting`` state, concurrently."""

        pending = [item for item in self.items() if isinstance(item.state, Extracting)]
        if not pending:
            return []
        oracle = oracle or ExtractionOracle()
        finished: List[ImportItem] = []
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as executor:
            futures = {
                executor.submit(extract, item.document.content, document_type, item.document.filename, oracle): item
                for item in pending
            }
            for future in as_completed(futures):
                item = futures[future]
                try:
                    updated = self.mark_extracted(item.item_id, future.result())
                except ExtractionFailure as exc:
                    logger.warning("Extraction failed for %s: %s", item.document.filename, exc)
                    updated = self.mark_extracted(
                        item.item_id, empty_payload(document_type, item.document.filename, str(exc))
                    )
                except Exception as exc:
                    logger.exception("Unexpected extraction error for %s", item.document.filename)
                    updated = self.set_state(item.item_id, Error(str(exc) or exc.__class__.__name__))
                if updated is None:
                    continue
                finished.append(updated)
                notify_update(updated, on_update)
        return finished

    def run_import(self, store, on_update: Optional[Callable[[ImportItem], None]] = None) -> BatchResult:
        """Import the selected ready items, writing each new state back by id."""

        def _record(item: ImportItem) -> None:
            self._put(item)
            if on_update is not None:
                on_update(item)

        return import_batch(store, self.items(), on_update=_record)


def _assign(fields: Dict[str, Any], dotted_path: str, value: Any) -> None:
    keys = dotted_path.split(".")
    target = fields
    for key in keys[:-1]:
        target = target.setdefault(key, {})
    target[keys[-1]] = value


def apply_edits(payload: ExtractedPayload, updates: Dict[str, Any]) -> ExtractedPayload:
    """Return a payload with reviewer corrections applied and its confidence re-scored.

    Keys are dotted field paths (``"couple.bride_first_name"``); None values
    are ignored so untouched form inputs never blank a field.
    """

    fields = copy.deepcopy(payload.fields)
    for path, value in updates.items():
        if value is not None:
            _assign(fields, path, value)
    confidence, missing = score_payload(payload.document_type, fields)
    kept = [warning for warning in payload.warnings if not warning.startswith(SCORER_WARNING_PREFIX)]
    return replace(payload, fields=fields, confidence=confidence, warnings=missing + kept)


def payload_summaries(items: Iterable[ImportItem]) -> List[Dict[str, Any]]:
    """Flatten queue items into whitespace-clean rows for tabular rendering."""

    def _sanitize(value: Any) -> Any:
        if isinstance(value, str):
            return " ".join(value.split())
        return value

    rows = []
    for item in items:
        payload = item.payload
        row = {
            "File": item.document.filename,
            "Status": item.status,
            "Selected": item.selected,
            "Name": payload_identity(payload).display_name if payload else "",
            "Confidence": payload.confidence if payload else "",
            "Warnings": len(payload.warnings) if payload else 0,
        }
        rows.append({key: _sanitize(value) for key, value in row.items()})
    return rows
