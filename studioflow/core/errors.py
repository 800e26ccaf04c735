"""Exception types raised by the extraction and import layers."""
from __future__ import annotations


class StudioFlowError(Exception):
    """Base class for errors raised by studioflow."""


class ExtractionFailure(StudioFlowError):
    """A document could not be turned into structured fields."""


class EmptyDocument(ExtractionFailure):
    """No text could be recovered from the document (e.g. an image-only PDF)."""


class UnreadableDocument(EmptyDocument):
    """The PDF parser rejected the document bytes."""


class OracleMalformedResponse(ExtractionFailure):
    """The extraction oracle answered with something that is not a JSON object."""


class OracleUnavailable(ExtractionFailure):
    """The extraction oracle is disabled, unconfigured, or unreachable."""


class InvalidStatusTransition(StudioFlowError, ValueError):
    """A couple's lifecycle status cannot move to the requested value."""


class RelatedRecordsError(StudioFlowError):
    """A related-table write failed after the couple row was committed."""

    def __init__(self, message: str, customer_id: str) -> None:
        super().__init__(message)
        self.customer_id = customer_id
