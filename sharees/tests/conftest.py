"""
Shared test fixtures for the sharee search test suite.

The directory service is replaced by FakeDirectory, whose searches either
answer straight away or wait until the test resolves them, so tests control
the order in which responses arrive.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from sharees.core.bus import EventEmitter
from sharees.core.errors import OcsError
from sharees.core.models import AuthenticatedSession


def sharee_entry(label, share_with, share_type=0, additional_info=None):
    value = {"shareWith": share_with, "shareType": share_type}
    if additional_info is not None:
        value["shareWithAdditionalInfo"] = additional_info
    return {"label": label, "value": value}


def sharee_response(broad=None, exact=None):
    data = dict(broad or {})
    data["exact"] = dict(exact or {})
    return {"ocs": {"meta": {"status": "ok", "statuscode": 200}, "data": data}}


class FakeDirectory:
    """Stands in for the directory search service."""

    def __init__(self, responder: Optional[Callable[[str], Any]] = None):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []
        self.pending: List[asyncio.Future] = []

    async def search(self, query, item_type, page, per_page, lookup):
        self.calls.append({
            "query": query,
            "item_type": item_type,
            "page": page,
            "per_page": per_page,
            "lookup": lookup,
        })

        if self.responder is not None:
            result = self.responder(query)
            if isinstance(result, OcsError):
                raise result
            return result

        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def resolve(self, index: int, document) -> None:
        self.pending[index].set_result(document)

    def fail(self, index: int, status_code: int, message: str) -> None:
        self.pending[index].set_exception(OcsError(status_code, message))

    def factory(self, session):
        return self


class Recorder:
    """Handler that keeps every event it receives, in order."""

    def __init__(self, target=None, pattern: str = "*"):
        self.events = []
        if target is not None:
            target.subscribe(pattern, self)

    def __call__(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [e.type for e in self.events]

    def of(self, event_class):
        return [e for e in self.events if isinstance(e, event_class)]


async def settle(seconds: float = 0.0) -> None:
    """Let pending callbacks and tasks run."""
    await asyncio.sleep(seconds)
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def session():
    return AuthenticatedSession(
        server_url="https://cloud.example.com",
        user="alice",
        app_password="secret"
    )


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def ann_response():
    return sharee_response(broad={"users": [sharee_entry("Ann", "ann")]})
