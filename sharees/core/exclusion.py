"""Filter for sharees that the item is already shared with."""

from typing import FrozenSet, Iterable, Tuple, Union

from .models import RecipientCandidate, ShareType

ExclusionKey = Tuple[ShareType, str]
ExclusionSet = FrozenSet[ExclusionKey]

EMPTY_EXCLUSIONS: ExclusionSet = frozenset()


def exclusion_key(candidate: RecipientCandidate) -> ExclusionKey:
    return (candidate.share_type, candidate.identifier)


def build_exclusion_set(
    items: Iterable[Union[RecipientCandidate, Tuple[int, str]]]
) -> ExclusionSet:
    """
    Build an exclusion set from candidates or (share type, identifier) pairs.

    Raw integer share types are converted, so unrecognized codes still match.
    """
    keys = set()
    for item in items:
        if isinstance(item, RecipientCandidate):
            keys.add(exclusion_key(item))
        else:
            share_type, identifier = item
            keys.add((ShareType(share_type), identifier))
    return frozenset(keys)


def is_excluded(candidate: RecipientCandidate, exclusions: Iterable[ExclusionKey]) -> bool:
    """True iff some exclusion entry has the candidate's share type and identifier."""
    return any(
        candidate.share_type == share_type and candidate.identifier == identifier
        for share_type, identifier in exclusions
    )
