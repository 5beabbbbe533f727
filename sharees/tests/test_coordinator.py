"""Tests for the fetch coordinator."""

import pytest

from sharees.core.bus import ErrorOccurred, FetchStateChanged, ResultsReady
from sharees.core.coordinator import FetchCoordinator, FetchState
from sharees.core.errors import OcsError
from sharees.core.exclusion import build_exclusion_set
from sharees.core.models import AuthenticatedSession, ItemKind, LookupMode, SearchQuery, ShareType
from sharees.core.results import ObservableResultList

from .conftest import FakeDirectory, Recorder, settle, sharee_entry, sharee_response


def _coordinator(emitter, directory):
    results = ObservableResultList(emitter)
    return FetchCoordinator(results, emitter, service_factory=directory.factory), results


class TestPreconditions:
    """Fetches that must not be issued."""

    def test_no_session_is_silent_noop(self, emitter):
        directory = FakeDirectory()
        coordinator, _ = _coordinator(emitter, directory)
        recorder = Recorder(emitter)

        assert coordinator.start(SearchQuery(text="ann"), None) is None

        assert directory.calls == []
        assert recorder.events == []
        assert coordinator.state is FetchState.IDLE
        assert coordinator.generation == 0

    def test_invalid_session_is_silent_noop(self, emitter):
        directory = FakeDirectory()
        coordinator, _ = _coordinator(emitter, directory)

        session = AuthenticatedSession(server_url="", user="")
        assert coordinator.start(SearchQuery(text="ann"), session) is None
        assert directory.calls == []

    def test_empty_query_is_silent_noop(self, emitter, session):
        directory = FakeDirectory()
        coordinator, _ = _coordinator(emitter, directory)
        recorder = Recorder(emitter)

        assert coordinator.start(SearchQuery(text=""), session) is None
        assert directory.calls == []
        assert recorder.events == []


class TestFetch:
    """Issued fetches and their outcomes."""

    @pytest.mark.asyncio
    async def test_request_parameters(self, emitter, session, ann_response):
        directory = FakeDirectory(lambda q: ann_response)
        coordinator, _ = _coordinator(emitter, directory)

        query = SearchQuery(text="ann", item_kind=ItemKind.FOLDER, lookup_mode=LookupMode.GLOBAL_SEARCH)
        await coordinator.start(query, session)

        assert directory.calls == [{
            "query": "ann",
            "item_type": "folder",
            "page": 1,
            "per_page": 50,
            "lookup": True,
        }]

    @pytest.mark.asyncio
    async def test_local_file_search_parameters(self, emitter, session, ann_response):
        directory = FakeDirectory(lambda q: ann_response)
        coordinator, _ = _coordinator(emitter, directory)

        await coordinator.start(SearchQuery(text="ann"), session)

        assert directory.calls[0]["item_type"] == "file"
        assert directory.calls[0]["lookup"] is False

    @pytest.mark.asyncio
    async def test_success_sets_idle_then_publishes(self, emitter, session, ann_response):
        directory = FakeDirectory()
        coordinator, results = _coordinator(emitter, directory)
        recorder = Recorder(emitter)

        task = coordinator.start(SearchQuery(text="ann"), session)
        assert coordinator.is_fetching
        assert recorder.events == [FetchStateChanged(is_fetching=True)]

        await settle()
        directory.resolve(0, ann_response)
        await task

        assert not coordinator.is_fetching
        assert recorder.types == [
            "fetch.state_changed",
            "fetch.state_changed",
            "results.reset_began",
            "results.reset_ended",
            "results.ready",
        ]
        assert recorder.events[1] == FetchStateChanged(is_fetching=False)
        assert [c.identifier for c in results] == ["ann"]

    @pytest.mark.asyncio
    async def test_exclusions_are_applied(self, emitter, session, ann_response):
        directory = FakeDirectory(lambda q: ann_response)
        coordinator, results = _coordinator(emitter, directory)

        exclusions = build_exclusion_set([(ShareType.USER, "ann")])
        await coordinator.start(SearchQuery(text="ann"), session, exclusions)

        assert list(results) == []

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_results(self, emitter, session, ann_response):
        responses = iter([ann_response, OcsError(403, "Forbidden")])
        directory = FakeDirectory(lambda q: next(responses))
        coordinator, results = _coordinator(emitter, directory)

        await coordinator.start(SearchQuery(text="ann"), session)
        before = results.candidates

        recorder = Recorder(emitter)
        await coordinator.start(SearchQuery(text="anne"), session)

        assert results.candidates == before
        assert not coordinator.is_fetching
        assert recorder.events == [
            FetchStateChanged(is_fetching=True),
            FetchStateChanged(is_fetching=False),
            ErrorOccurred(status_code=403, message="Forbidden"),
        ]

    @pytest.mark.asyncio
    async def test_unexpected_service_error_is_reported(self, emitter, session):
        def responder(query):
            raise RuntimeError("socket closed")

        directory = FakeDirectory(responder)
        coordinator, _ = _coordinator(emitter, directory)
        recorder = Recorder(emitter, "fetch.error")

        await coordinator.start(SearchQuery(text="ann"), session)

        assert recorder.events == [ErrorOccurred(status_code=0, message="socket closed")]
        assert not coordinator.is_fetching


class TestOverlappingFetches:
    """The most recently issued fetch wins."""

    @pytest.mark.asyncio
    async def test_late_stale_response_is_discarded(self, emitter, session):
        directory = FakeDirectory()
        coordinator, results = _coordinator(emitter, directory)
        recorder = Recorder(emitter, ResultsReady.type)

        coordinator.start(SearchQuery(text="an"), session)
        coordinator.start(SearchQuery(text="ann"), session)
        await settle()
        assert coordinator.generation == 2

        # newer answers first, older arrives last
        directory.resolve(1, sharee_response(broad={"users": [sharee_entry("Ann", "ann")]}))
        await settle()
        directory.resolve(0, sharee_response(broad={"users": [sharee_entry("Andy", "andy")]}))
        await coordinator.wait()

        assert [c.identifier for c in results] == ["ann"]
        assert len(recorder.events) == 1

    @pytest.mark.asyncio
    async def test_stays_fetching_until_latest_completes(self, emitter, session, ann_response):
        directory = FakeDirectory()
        coordinator, results = _coordinator(emitter, directory)

        coordinator.start(SearchQuery(text="an"), session)
        coordinator.start(SearchQuery(text="ann"), session)
        await settle()

        directory.resolve(0, ann_response)
        await settle()
        assert coordinator.is_fetching
        assert list(results) == []

        directory.resolve(1, ann_response)
        await coordinator.wait()
        assert not coordinator.is_fetching
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_stale_failure_is_silent(self, emitter, session, ann_response):
        directory = FakeDirectory()
        coordinator, _ = _coordinator(emitter, directory)
        errors = Recorder(emitter, ErrorOccurred.type)

        coordinator.start(SearchQuery(text="an"), session)
        coordinator.start(SearchQuery(text="ann"), session)
        await settle()

        directory.resolve(1, ann_response)
        directory.fail(0, 500, "Internal error")
        await coordinator.wait()

        assert errors.events == []

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight(self, emitter, session):
        directory = FakeDirectory()
        coordinator, results = _coordinator(emitter, directory)
        states = Recorder(emitter, FetchStateChanged.type)

        task = coordinator.start(SearchQuery(text="ann"), session)
        await settle()
        coordinator.close()
        await settle()

        assert task.cancelled()
        assert not coordinator.is_fetching
        assert states.events == [
            FetchStateChanged(is_fetching=True),
            FetchStateChanged(is_fetching=False),
        ]

    @pytest.mark.asyncio
    async def test_completion_after_close_is_discarded(self, emitter, session, ann_response):
        directory = FakeDirectory()
        coordinator, results = _coordinator(emitter, directory)
        recorder = Recorder(emitter)

        coordinator.start(SearchQuery(text="ann"), session)
        generation = coordinator.generation
        coordinator.close()
        coordinator._on_success(generation, "ann", ann_response, frozenset())

        assert len(results) == 0
        assert ResultsReady.type not in recorder.types

    def test_close_while_idle_emits_nothing(self, emitter):
        coordinator, _ = _coordinator(emitter, FakeDirectory())
        recorder = Recorder(emitter)

        coordinator.close()

        assert recorder.events == []
