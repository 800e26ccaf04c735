"""Tests for the tiered record-matching cascade."""
from studioflow.core.models import MatchIdentity, MatchTier
from studioflow.processing.matching import fuzzy_matches, match_couple, name_tokens


def _couple(store, name: str, wedding_date=None):
    return store.insert("couples", {"couple_name": name, "wedding_date": wedding_date})


def test_date_and_bride_prefix_match(memory_store) -> None:
    record = _couple(memory_store, "Amanda & Justin Kong", "2026-09-12")
    _couple(memory_store, "Bianca & Tom Reyes", "2026-09-12")

    match = match_couple(
        memory_store,
        MatchIdentity("Amanda & Justin Kong", "Amanda", "Justin", "2026-09-12"),
    )

    assert match.customer_id == record["id"]
    assert match.tier is MatchTier.DATE_PRIMARY_PREFIX


def test_date_tier_takes_first_store_ordered_hit(memory_store) -> None:
    first = _couple(memory_store, "Amanda & Justin Kong", "2026-09-12")
    _couple(memory_store, "Amanda & Jason Smith", "2026-09-12")

    match = match_couple(memory_store, MatchIdentity("", "Amanda", "", "2026-09-12"))

    assert match.customer_id == first["id"]


def test_secondary_name_within_date(memory_store) -> None:
    record = _couple(memory_store, "Amanda & Justin Kong", "2026-09-12")

    match = match_couple(memory_store, MatchIdentity("", "Mandy", "Justin", "2026-09-12"))

    assert match.customer_id == record["id"]
    assert match.tier is MatchTier.DATE_SECONDARY_SUBSTRING


def test_prefix_without_date_requires_a_unique_record(memory_store) -> None:
    _couple(memory_store, "Amanda & Justin Kong", "2026-09-12")
    _couple(memory_store, "Amanda & Jason Smith", "2027-06-01")

    assert match_couple(memory_store, MatchIdentity("Amanda & Justin Kong", "Amanda", "Justin")) is None


def test_unique_prefix_without_date_matches(memory_store) -> None:
    record = _couple(memory_store, "Amanda & Justin Kong", "2026-09-12")
    _couple(memory_store, "Bianca & Tom Reyes", "2027-06-01")

    match = match_couple(memory_store, MatchIdentity("", "amanda", ""))

    assert match.customer_id == record["id"]
    assert match.tier is MatchTier.PRIMARY_PREFIX_UNIQUE


def test_date_tier_wins_over_weaker_tiers(memory_store) -> None:
    _couple(memory_store, "Amanda Lee & Justin", "2025-05-05")
    dated = _couple(memory_store, "Amanda & Justin Kong", "2026-09-12")

    match = match_couple(
        memory_store,
        MatchIdentity("Amanda & Justin Kong", "Amanda", "Justin", "2026-09-12"),
    )

    assert match.customer_id == dated["id"]
    assert match.tier is MatchTier.DATE_PRIMARY_PREFIX


def test_title_only_identity_matches_exact_name(memory_store) -> None:
    record = _couple(memory_store, "Amanda & Justin Kong")
    _couple(memory_store, "Amanda & Justin Kong-Lee")

    match = match_couple(memory_store, MatchIdentity("amanda & justin kong"))

    assert match.customer_id == record["id"]
    assert match.tier is MatchTier.EXACT_NAME


def test_title_only_identity_falls_back_to_fuzzy_tokens(memory_store, caplog) -> None:
    record = _couple(memory_store, "Amanda Lee & Justin Kong")
    _couple(memory_store, "Bianca & Tom Reyes")
    caplog.set_level("INFO")

    match = match_couple(memory_store, MatchIdentity("Amanda & Justin Kong"))

    assert match.customer_id == record["id"]
    assert match.tier is MatchTier.FUZZY_TOKEN
    assert "fuzzy_token" in caplog.text


def test_ambiguous_fuzzy_match_is_no_match(memory_store) -> None:
    _couple(memory_store, "Amanda Lee & Justin Kong")
    _couple(memory_store, "Justin Kong & Amanda Wu")

    assert match_couple(memory_store, MatchIdentity("Amanda & Justin Kong")) is None


def test_names_without_usable_tokens_never_match(memory_store) -> None:
    _couple(memory_store, "Al & Bo")

    assert match_couple(memory_store, MatchIdentity("Al & Bo Li")) is None
    assert name_tokens("Al & Bo Li") == []


def test_identities_with_first_names_skip_fuzzy_tiers(memory_store) -> None:
    _couple(memory_store, "Jenna & Justin Kong")

    assert match_couple(memory_store, MatchIdentity("Amanda & Justin Kong", "Amanda", "Justin")) is None


def test_fuzzy_rule_needs_two_tokens_when_available() -> None:
    assert fuzzy_matches("Amanda & Justin Kong", "Amanda and Justin")
    assert not fuzzy_matches("Amanda & Justin Kong", "Amanda Wu")
    assert fuzzy_matches("Amanda", "Amanda Wu")


def test_empty_store_has_no_match(memory_store) -> None:
    assert match_couple(memory_store, MatchIdentity("Amanda & Justin Kong", "Amanda", "Justin", "2026-09-12")) is None
