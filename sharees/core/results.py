"""Observable list of sharee search results."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Tuple, Union

from loguru import logger

from .bus import EventEmitter, ModelResetBegan, ModelResetEnded, ResultsReady
from .errors import UnknownFieldError
from .models import RecipientCandidate


class ResultField(Enum):
    """Fields readable per result row."""
    CANDIDATE = "candidate"
    DISPLAY_LABEL = "display_label"
    MATCH_STRING = "match_string"

    @classmethod
    def parse(cls, field: Union["ResultField", str]) -> "ResultField":
        """Resolve a field by member or name; raises UnknownFieldError."""
        if isinstance(field, cls):
            return field
        try:
            return cls(field)
        except ValueError:
            raise UnknownFieldError(field) from None


@dataclass(frozen=True)
class ResultRow:
    """One result with its derived fields."""
    candidate: RecipientCandidate
    display_label: str
    match_string: str

    @classmethod
    def from_candidate(cls, candidate: RecipientCandidate) -> "ResultRow":
        return cls(
            candidate=candidate,
            display_label=candidate.display_name,
            match_string=candidate.match_string,
        )

    def get(self, field: ResultField) -> Any:
        return getattr(self, field.value)


class ObservableResultList:
    """
    Holds the current ordered results and notifies on replacement.

    The list only changes through publish(), which replaces it wholesale
    between a reset-began and reset-ended notification and then announces
    the new results.

    Signals:
        results.reset_began, results.reset_ended, results.ready
    """

    def __init__(self, emitter: EventEmitter):
        self._emitter = emitter
        self._candidates: Tuple[RecipientCandidate, ...] = ()

    def publish(self, candidates: Iterable[RecipientCandidate]) -> None:
        """Replace the whole list and notify observers."""
        new_candidates = tuple(candidates)

        self._emitter.emit(ModelResetBegan())
        self._candidates = new_candidates
        self._emitter.emit(ModelResetEnded())

        self._emitter.emit(ResultsReady(count=len(new_candidates)))

    @property
    def candidates(self) -> Tuple[RecipientCandidate, ...]:
        return self._candidates

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[RecipientCandidate]:
        return iter(self._candidates)

    def row(self, index: int) -> Optional[ResultRow]:
        """Row at index, or None when out of range."""
        if index < 0 or index >= len(self._candidates):
            return None
        return ResultRow.from_candidate(self._candidates[index])

    def data(self, index: int, field: Union[ResultField, str]) -> Any:
        """
        Read one derived field of one row.

        Returns None for an out-of-range index, and logs a warning and
        returns None for an unknown field.
        """
        row = self.row(index)
        if row is None:
            return None

        try:
            result_field = ResultField.parse(field)
        except UnknownFieldError as e:
            logger.warning(f"Got unknown field {e.field!r}, returning null value")
            return None

        return row.get(result_field)
