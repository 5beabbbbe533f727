"""Sharee search core: debouncing, fetching, merging and the result model."""

from .models import (
    AuthenticatedSession, ItemKind, LookupMode, RecipientCandidate, SearchQuery, ShareType
)
from .results import ObservableResultList, ResultField, ResultRow
from .search_model import ShareeSearchModel

__all__ = [
    "AuthenticatedSession",
    "ItemKind",
    "LookupMode",
    "ObservableResultList",
    "RecipientCandidate",
    "ResultField",
    "ResultRow",
    "SearchQuery",
    "ShareType",
    "ShareeSearchModel",
]
