"""Tests for the exclusion filter."""

from sharees.core.exclusion import EMPTY_EXCLUSIONS, build_exclusion_set, is_excluded
from sharees.core.models import RecipientCandidate, ShareType


def _candidate(share_type=ShareType.USER, identifier="ann"):
    return RecipientCandidate(share_type=share_type, identifier=identifier, display_name="Ann")


def test_match_on_type_and_identifier():
    assert is_excluded(_candidate(), {(ShareType.USER, "ann")})


def test_same_identifier_different_type_is_kept():
    assert not is_excluded(_candidate(ShareType.GROUP), {(ShareType.USER, "ann")})


def test_same_type_different_identifier_is_kept():
    assert not is_excluded(_candidate(identifier="anna"), {(ShareType.USER, "ann")})


def test_empty_exclusions_keep_everything():
    assert not is_excluded(_candidate(), EMPTY_EXCLUSIONS)


def test_build_from_candidates_and_pairs():
    exclusions = build_exclusion_set([
        _candidate(ShareType.GROUP, "admins"),
        (0, "ann"),
        (12, "board-1"),
    ])
    assert exclusions == frozenset({
        (ShareType.GROUP, "admins"),
        (ShareType.USER, "ann"),
        (ShareType(12), "board-1"),
    })


def test_unrecognized_types_still_match():
    exclusions = build_exclusion_set([(12, "board-1")])
    assert is_excluded(_candidate(ShareType(12), "board-1"), exclusions)
