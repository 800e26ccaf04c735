"""Tiered heuristics that link an extracted identity to an existing couple."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from studioflow.core.models import MatchCandidate, MatchIdentity, MatchTier

logger = logging.getLogger(__name__)


def name_tokens(text: str) -> List[str]:
    """Lower-cased tokens of a free-text title, split on whitespace and ``&``."""

    return [token for token in re.split(r"[\s&]+", text.lower()) if len(token) > 2]


def fuzzy_matches(candidate: str, record_name: str) -> bool:
    """True when enough of the candidate's tokens occur in the record's name."""

    tokens = name_tokens(candidate)
    if not tokens:
        return False
    haystack = record_name.lower()
    hits = sum(1 for token in tokens if token in haystack)
    return hits >= min(2, len(tokens))


def _unique(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return rows[0] if len(rows) == 1 else None


def _accept(record: Dict[str, Any], tier: MatchTier) -> MatchCandidate:
    logger.info("Matched %r via %s", record.get("couple_name"), tier.value)
    return MatchCandidate(record=record, tier=tier)


def match_couple(store, identity: MatchIdentity) -> Optional[MatchCandidate]:
    """Run the matching cascade and return the first tier's result, or None.

    Date-gated tiers take the first store-ordered hit; tiers without a date
    only accept a single unambiguous record. The display-name tiers (exact,
    then fuzzy token overlap) apply to identities that carry only a title.
    """

    primary = (identity.primary_first_name or "").strip()
    secondary = (identity.secondary_first_name or "").strip()
    display_name = (identity.display_name or "").strip()

    if identity.wedding_date and primary:
        rows = store.find_couples(wedding_date=identity.wedding_date, name_prefix=primary)
        if rows:
            return _accept(rows[0], MatchTier.DATE_PRIMARY_PREFIX)

    if identity.wedding_date and secondary:
        rows = store.find_couples(wedding_date=identity.wedding_date, name_contains=secondary)
        if rows:
            return _accept(rows[0], MatchTier.DATE_SECONDARY_SUBSTRING)

    if primary:
        rows = store.find_couples(name_prefix=primary)
        record = _unique(rows)
        if record:
            return _accept(record, MatchTier.PRIMARY_PREFIX_UNIQUE)
        if rows:
            logger.info("Ignoring %d ambiguous prefix matches for %r", len(rows), primary)

    # Free-text titles only; identities with first names stop at the tiers above.
    if display_name and not (primary or secondary):
        record = _unique(store.find_couples(name_equals=display_name))
        if record:
            return _accept(record, MatchTier.EXACT_NAME)

        fuzzy = [row for row in store.list_couples() if fuzzy_matches(display_name, row.get("couple_name") or "")]
        record = _unique(fuzzy)
        if record:
            return _accept(record, MatchTier.FUZZY_TOKEN)
        if fuzzy:
            logger.info("Ignoring %d ambiguous fuzzy matches for %r", len(fuzzy), display_name)

    return None
