"""Parse and merge sharee directory responses.

A response carries two segments: the broad (partial match) results, which
live directly under ocs.data, and the exact matches under ocs.data.exact.
Both hold the same six category lists. The merged list is every broad
candidate in category order followed by every exact candidate in category
order. Nothing is sorted or deduplicated across segments.

Malformed fields never raise: a missing category is an empty list, a
missing string is "", a missing share type is 0.
"""

from typing import Any, Dict, Iterable, List, Mapping

from loguru import logger

from .exclusion import EMPTY_EXCLUSIONS, ExclusionKey, is_excluded
from .models import RecipientCandidate, ShareType

CATEGORY_ORDER = ("users", "groups", "emails", "remotes", "circles", "rooms")
EXACT_SEGMENT = "exact"


def _as_object(value: Any) -> Dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List:
    return value if isinstance(value, list) else []


def _as_string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_share_type(value: Any) -> ShareType:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        value = 0
    return ShareType(value)


def parse_candidate(entry: Mapping) -> RecipientCandidate:
    """Build a candidate from one category entry."""
    entry = _as_object(entry)
    value = _as_object(entry.get("value"))

    display_name = _as_string(entry.get("label"))
    additional_info = _as_string(value.get("shareWithAdditionalInfo"))
    if additional_info:
        display_name = f"{display_name} ({additional_info})"

    return RecipientCandidate(
        share_type=_as_share_type(value.get("shareType")),
        identifier=_as_string(value.get("shareWith")),
        display_name=display_name,
        additional_info=additional_info or None,
    )


def parse_segment(
    segment: Mapping,
    exclusions: Iterable[ExclusionKey] = EMPTY_EXCLUSIONS
) -> List[RecipientCandidate]:
    """Parse one segment in category order, dropping excluded candidates."""
    segment = _as_object(segment)
    candidates = []

    for category in CATEGORY_ORDER:
        for entry in _as_list(segment.get(category)):
            candidate = parse_candidate(entry)
            if is_excluded(candidate, exclusions):
                continue
            candidates.append(candidate)

    return candidates


def merge_response(
    document: Mapping,
    exclusions: Iterable[ExclusionKey] = EMPTY_EXCLUSIONS
) -> List[RecipientCandidate]:
    """
    Merge a full response document into one ordered candidate list.

    Args:
        document: Decoded JSON body, shaped {"ocs": {"data": {...}}}
        exclusions: (share type, identifier) pairs to leave out

    Returns:
        Broad segment candidates followed by exact segment candidates
    """
    exclusions = tuple(exclusions)
    data = _as_object(_as_object(_as_object(document).get("ocs")).get("data"))

    broad = parse_segment(data, exclusions)
    exact = parse_segment(data.get(EXACT_SEGMENT), exclusions)

    logger.debug(f"Merged {len(broad)} broad and {len(exact)} exact sharees")
    return broad + exact
