"""Sharee search model exposed to a UI layer.

Wires the pieces together:

    search_text edit -> SearchDebouncer -> FetchCoordinator -> directory
    -> merge_response (+ exclusions) -> ObservableResultList -> observers

Property setters do nothing when the value is unchanged. Otherwise they
emit the matching *Changed event; setting search_text also restarts the
debounce timer.
"""

from typing import Any, Iterable, Optional, Tuple, Union

from loguru import logger

from .bus import (
    Event, EventEmitter, ExclusionsChanged, FetchStateChanged, ItemKindChanged,
    LookupModeChanged, SearchTextChanged, SessionChanged
)
from .client import OcsShareeClient
from .config import Config
from .coordinator import FetchCoordinator, ServiceFactory
from .debounce import DEFAULT_DEBOUNCE_MS, SearchDebouncer
from .exclusion import EMPTY_EXCLUSIONS, ExclusionSet, build_exclusion_set
from .models import AuthenticatedSession, ItemKind, LookupMode, RecipientCandidate, SearchQuery
from .results import ObservableResultList, ResultField, ResultRow


class ShareeSearchModel:
    """
    Debounced typeahead search over the sharee directory.

    Signals:
        query.text_changed, query.item_kind_changed, query.lookup_mode_changed,
        session.changed, exclusions.changed, fetch.state_changed, fetch.error,
        results.reset_began, results.reset_ended, results.ready
    """

    def __init__(
        self,
        service_factory: Optional[ServiceFactory] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        page: int = 1,
        per_page: int = 50,
        timeout_s: float = 10.0
    ):
        if service_factory is None:
            def service_factory(session):
                return OcsShareeClient(session, timeout=timeout_s)

        self._emitter = EventEmitter()
        self._query = SearchQuery()
        self._session: Optional[AuthenticatedSession] = None
        self._exclusions: ExclusionSet = EMPTY_EXCLUSIONS

        self._results = ObservableResultList(self._emitter)
        self._coordinator = FetchCoordinator(
            self._results,
            self._emitter,
            service_factory=service_factory,
            page=page,
            per_page=per_page
        )
        self._debouncer = SearchDebouncer(self._on_search_settled, interval_ms=debounce_ms)

        self._emitter.subscribe(FetchStateChanged.type, self._on_fetch_state_changed)

    @classmethod
    def from_config(cls, config: Config, service_factory: Optional[ServiceFactory] = None) -> "ShareeSearchModel":
        model = cls(
            service_factory=service_factory,
            debounce_ms=config.search.debounce_ms,
            page=config.search.page,
            per_page=config.search.per_page,
            timeout_s=config.search.timeout_s
        )
        model.session = config.session()
        return model

    # Observers

    def subscribe(self, event_pattern: str, handler) -> None:
        self._emitter.subscribe(event_pattern, handler)

    def unsubscribe(self, event_pattern: str, handler) -> None:
        self._emitter.unsubscribe(event_pattern, handler)

    def _emit(self, event: Event) -> None:
        self._emitter.emit(event)

    # Properties

    @property
    def session(self) -> Optional[AuthenticatedSession]:
        return self._session

    @session.setter
    def session(self, session: Optional[AuthenticatedSession]) -> None:
        if session == self._session:
            return
        self._session = session
        self._emit(SessionChanged(has_session=session is not None))

    @property
    def item_is_folder(self) -> bool:
        return self._query.item_kind is ItemKind.FOLDER

    @item_is_folder.setter
    def item_is_folder(self, item_is_folder: bool) -> None:
        if item_is_folder == self.item_is_folder:
            return
        self._query.item_kind = ItemKind.FOLDER if item_is_folder else ItemKind.FILE
        self._emit(ItemKindChanged(item_is_folder=item_is_folder))

    @property
    def search_text(self) -> str:
        return self._query.text

    @search_text.setter
    def search_text(self, text: str) -> None:
        if text == self._query.text:
            return
        self._query.text = text
        self._emit(SearchTextChanged(text=text))
        self._debouncer.query_edited()

    @property
    def lookup_mode(self) -> LookupMode:
        return self._query.lookup_mode

    @lookup_mode.setter
    def lookup_mode(self, lookup_mode: LookupMode) -> None:
        if lookup_mode is self._query.lookup_mode:
            return
        self._query.lookup_mode = lookup_mode
        self._emit(LookupModeChanged(lookup_mode=lookup_mode))

    @property
    def exclusions(self) -> ExclusionSet:
        return self._exclusions

    @exclusions.setter
    def exclusions(self, items: Iterable[Union[RecipientCandidate, Tuple[int, str]]]) -> None:
        exclusions = build_exclusion_set(items)
        if exclusions == self._exclusions:
            return
        self._exclusions = exclusions
        self._emit(ExclusionsChanged(count=len(exclusions)))

    @property
    def is_fetching(self) -> bool:
        return self._coordinator.is_fetching

    @property
    def query(self) -> SearchQuery:
        return self._query

    @property
    def debouncer(self) -> SearchDebouncer:
        return self._debouncer

    # Read model

    @property
    def candidates(self) -> Tuple[RecipientCandidate, ...]:
        return self._results.candidates

    def row_count(self) -> int:
        """
        Number of rows, 0 while there is no session.

        Only the count checks the session; row(), data() and candidates
        keep returning the last published rows.
        """
        if self._session is None:
            return 0
        return len(self._results)

    def row(self, index: int) -> Optional[ResultRow]:
        return self._results.row(index)

    def data(self, index: int, field: Union[ResultField, str]) -> Any:
        return self._results.data(index, field)

    # Fetching

    def fetch(self) -> bool:
        """Fetch right away with the current query. Returns True if issued."""
        return self._on_search_settled()

    def _on_search_settled(self) -> bool:
        task = self._coordinator.start(self._query, self._session, self._exclusions)
        return task is not None

    def _on_fetch_state_changed(self, event: FetchStateChanged) -> None:
        if not event.is_fetching:
            self._debouncer.response_received()

    async def wait(self) -> None:
        """Wait for in-flight fetches to complete."""
        await self._coordinator.wait()

    def close(self) -> None:
        """Stop the debounce timer and cancel in-flight fetches."""
        self._debouncer.cancel()
        self._coordinator.close()
        logger.debug("Sharee search model closed")
