"""Human-in-the-loop review of extracted documents before import."""
from studioflow.review.queue import ImportQueue, apply_edits, payload_summaries, should_auto_select

__all__ = ["ImportQueue", "apply_edits", "payload_summaries", "should_auto_select"]
