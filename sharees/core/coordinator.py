"""Issue sharee searches and route their results."""

import asyncio
from enum import Enum
from typing import Callable, Optional, Set

from loguru import logger

from .bus import ErrorOccurred, EventEmitter, FetchStateChanged
from .client import DirectorySearchService, OcsShareeClient
from .errors import OcsError
from .exclusion import EMPTY_EXCLUSIONS, ExclusionSet
from .models import AuthenticatedSession, LookupMode, SearchQuery
from .parser import merge_response
from .results import ObservableResultList

ServiceFactory = Callable[[AuthenticatedSession], DirectorySearchService]


class FetchState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class FetchCoordinator:
    """
    Owns the fetch state and turns settled queries into directory searches.

    Every issued fetch gets a generation number. Only the completion of
    the most recently issued fetch is applied; earlier ones that finish
    late are discarded, so the newest query always wins.
    """

    def __init__(
        self,
        results: ObservableResultList,
        emitter: EventEmitter,
        service_factory: ServiceFactory = OcsShareeClient,
        page: int = 1,
        per_page: int = 50
    ):
        self._results = results
        self._emitter = emitter
        self._service_factory = service_factory
        self.page = page
        self.per_page = per_page

        self._state = FetchState.IDLE
        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def is_fetching(self) -> bool:
        return self._state is FetchState.FETCHING

    @property
    def generation(self) -> int:
        return self._generation

    def start(
        self,
        query: SearchQuery,
        session: Optional[AuthenticatedSession],
        exclusions: ExclusionSet = EMPTY_EXCLUSIONS
    ) -> Optional[asyncio.Task]:
        """
        Issue a fetch for the query as it is now.

        Returns the running task, or None when there is no usable session
        or the query text is empty.
        """
        if session is None or not session.is_valid or not query.text:
            logger.info(f"Not fetching sharees for search string: {query.text!r}")
            return None

        self._generation += 1
        generation = self._generation

        self._set_state(FetchState.FETCHING)

        service = self._service_factory(session)
        request = (
            query.text,
            query.item_kind.value,
            self.page,
            self.per_page,
            query.lookup_mode is LookupMode.GLOBAL_SEARCH
        )

        task = asyncio.ensure_future(
            self._run(generation, service, request, frozenset(exclusions))
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.debug(f"Issued sharee fetch #{generation} for {query.text!r}")
        return task

    async def _run(self, generation: int, service, request: tuple, exclusions: ExclusionSet) -> None:
        try:
            document = await service.search(*request)
        except OcsError as e:
            self._on_failure(generation, e)
        except Exception as e:
            logger.exception(f"Sharee search task error: {e}")
            self._on_failure(generation, OcsError(0, str(e)))
        else:
            self._on_success(generation, request[0], document, exclusions)

    def _on_success(self, generation: int, text: str, document, exclusions: ExclusionSet) -> None:
        if generation != self._generation:
            logger.debug(f"Discarding stale sharee response #{generation}")
            return

        logger.info(f"Search string {text!r} resulted in reply: {document}")
        candidates = merge_response(document, exclusions)

        self._set_state(FetchState.IDLE)
        self._results.publish(candidates)

    def _on_failure(self, generation: int, error: OcsError) -> None:
        if generation != self._generation:
            logger.debug(f"Discarding stale sharee error #{generation}: {error}")
            return

        logger.warning(f"Sharee fetch failed with {error.status_code}: {error.message}")

        self._set_state(FetchState.IDLE)
        self._emitter.emit(ErrorOccurred(
            status_code=error.status_code,
            message=error.message
        ))

    def _set_state(self, state: FetchState) -> None:
        self._state = state
        self._emitter.emit(FetchStateChanged(is_fetching=state is FetchState.FETCHING))

    async def wait(self) -> None:
        """Wait for every in-flight fetch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel in-flight fetches and go back to idle."""
        for task in list(self._tasks):
            task.cancel()
        # Late completions of cancelled fetches must not be applied.
        self._generation += 1
        if self._state is FetchState.FETCHING:
            self._set_state(FetchState.IDLE)
