"""Streamlit page to upload, review, and import studio PDFs."""
from pathlib import Path
from typing import Dict, List

import streamlit as st

# Allow running via "streamlit run studioflow/ui/importer.py" without installing the package
# by ensuring the repository root is on ``sys.path``.
if __package__ in {None, ""}:
    import sys

    sys.path.append(str(Path(__file__).resolve().parents[2]))

from studioflow.core.logging import configure_logging
from studioflow.core.models import Confidence, DocumentType, Error, ImportItem, SourceDocument
from studioflow.review.queue import ImportQueue, payload_summaries

MAX_FILES = 10

DOCUMENT_TYPE_LABELS = {
    DocumentType.CONTRACT.value: "Contract",
    DocumentType.EXTRAS_QUOTE.value: "Extras quote (frames & albums)",
    DocumentType.LEAD_QUOTE.value: "Lead quote",
}


def _confidence_badge(confidence: str) -> str:
    """Return a color-coded confidence label."""

    mapping = {
        Confidence.HIGH.value: "🟢 High",
        Confidence.MEDIUM.value: "🟡 Medium",
        Confidence.LOW.value: "🔴 Low",
    }
    return mapping.get(confidence, "⚪ Unknown")


def _status_badge(item: ImportItem) -> str:
    mapping = {
        "extracting": "⏳ Extracting",
        "ready": "📄 Ready",
        "importing": "⏫ Importing",
        "done": "✅ Imported",
        "error": "❌ Failed",
    }
    label = mapping.get(item.status, item.status)
    if isinstance(item.state, Error) and item.state.partial:
        label = "⚠️ Partially imported"
    return label


def _session_queue() -> ImportQueue:
    if "import_queue" not in st.session_state:
        st.session_state.import_queue = ImportQueue()
    return st.session_state.import_queue


def _open_store():
    if "store" not in st.session_state:
        from studioflow.storage.supabase_store import SupabaseStore

        st.session_state.store = SupabaseStore.from_config()
    return st.session_state.store


def _rerun_app() -> None:
    """Trigger a Streamlit rerun, compatible with newer and older APIs."""

    rerun = getattr(st, "rerun", None) or getattr(st, "experimental_rerun", None)
    if not rerun:
        raise RuntimeError("Streamlit does not expose a rerun helper.")
    rerun()


def _upload_section(queue: ImportQueue, document_type: str) -> None:
    uploads = st.file_uploader(
        "Upload PDFs",
        type=["pdf"],
        accept_multiple_files=True,
        key=f"uploader_{document_type}",
    )
    if not uploads:
        return
    if len(uploads) > MAX_FILES:
        st.warning(f"Only the first {MAX_FILES} files will be processed.")
        uploads = uploads[:MAX_FILES]

    if st.button("Extract uploaded files", type="primary"):
        for upload in uploads:
            queue.add(SourceDocument(filename=upload.name, content=upload.getvalue()))
        with st.spinner(f"Extracting {len(uploads)} documents..."):
            queue.extract_all(document_type)
        _rerun_app()


def _queue_metrics(queue: ImportQueue) -> None:
    counts = queue.counts()
    cols = st.columns(4)
    cols[0].metric("Documents", len(queue))
    cols[1].metric("Ready", counts["ready"])
    cols[2].metric("Imported", counts["done"])
    cols[3].metric("Failed", counts["error"])


def _review_items(queue: ImportQueue) -> None:
    items = queue.items()
    if not items:
        st.info("Upload PDFs to start a batch.")
        return

    if st.checkbox("Select all ready documents", key="select_all_ready"):
        queue.select_all_ready()

    for item in items:
        payload = item.payload
        header = f"{_status_badge(item)} · {item.document.filename}"
        with st.expander(header, expanded=item.status == "ready"):
            if payload is not None:
                st.markdown(f"**Confidence:** {_confidence_badge(payload.confidence)}")
                for warning in payload.warnings:
                    st.warning(warning)
                st.json(payload.fields, expanded=False)
            if isinstance(item.state, Error):
                st.error(item.state.message)
            if item.status == "ready":
                checked = st.checkbox("Import this document", value=item.selected, key=f"select_{item.item_id}")
                if checked != item.selected:
                    queue.toggle(item.item_id, checked)


def _import_section(queue: ImportQueue) -> None:
    selected = queue.selected_items()
    if not st.button(f"Import selected ({len(selected)})", type="primary", disabled=not selected):
        return

    progress = st.progress(0.0)
    status_lines: Dict[str, str] = {}
    placeholder = st.empty()
    finished: List[str] = []

    def _on_update(item: ImportItem) -> None:
        status_lines[item.item_id] = f"{_status_badge(item)} · {item.document.filename}"
        if item.status in {"done", "error"} and item.item_id not in finished:
            finished.append(item.item_id)
            progress.progress(len(finished) / len(selected))
        placeholder.markdown("\n\n".join(status_lines.values()))

    result = queue.run_import(_open_store(), on_update=_on_update)
    if result.failed:
        st.warning(f"Imported {result.succeeded}, failed {result.failed}.")
    else:
        st.success(f"Imported {result.succeeded} documents.")
    st.dataframe(payload_summaries(queue.items()), hide_index=True, use_container_width=True)


def main() -> None:
    """Launch the document importer page."""

    configure_logging()
    st.set_page_config(page_title="Document Importer", layout="wide")
    st.title("Import studio documents")
    st.caption("Extract contracts and quotes, review what was found, then import into the studio database.")

    queue = _session_queue()
    document_type = st.radio(
        "Document type",
        options=list(DOCUMENT_TYPE_LABELS),
        format_func=DOCUMENT_TYPE_LABELS.get,
        horizontal=True,
    )

    _upload_section(queue, document_type)
    _queue_metrics(queue)
    _review_items(queue)
    _import_section(queue)

    action_cols = st.columns(3)
    if action_cols[0].button("Retry failed", type="secondary"):
        queue.retry_failed()
        queue.extract_all(document_type)
        _rerun_app()
    if action_cols[1].button("Clear imported", type="secondary"):
        queue.clear_done()
        _rerun_app()
    if action_cols[2].button("Clear all", type="secondary"):
        queue.clear()
        _rerun_app()


if __name__ == "__main__":
    main()
