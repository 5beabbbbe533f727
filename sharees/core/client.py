"""HTTP client for the OCS sharee directory."""

from typing import Any, Dict, Optional, Protocol

import httpx
from loguru import logger

from .errors import OcsError
from .models import AuthenticatedSession

SHAREES_PATH = "ocs/v2.php/apps/files_sharing/api/v1/sharees"

# OCS v1 reports success as 100, v2 as 200
OCS_SUCCESS_CODES = (100, 200)


class DirectorySearchService(Protocol):
    """Anything that can run a sharee search."""

    async def search(
        self,
        query: str,
        item_type: str,
        page: int,
        per_page: int,
        lookup: bool
    ) -> Dict[str, Any]:
        ...


def _ocs_meta(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    ocs = payload.get("ocs")
    if not isinstance(ocs, dict):
        return {}
    meta = ocs.get("meta")
    return meta if isinstance(meta, dict) else {}


class OcsShareeClient:
    """
    Queries the sharee endpoint of a server for one session.

    Failures of every kind surface as OcsError:
    - OCS meta status other than 100/200: (meta statuscode, meta message)
    - HTTP error status: (HTTP status, meta message or reason phrase)
    - Transport error: (0, error text)
    """

    def __init__(
        self,
        session: AuthenticatedSession,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.session = session
        self.timeout = timeout
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.session.server_url.rstrip("/") + "/",
            auth=(self.session.user, self.session.app_password),
            headers={
                "OCS-APIREQUEST": "true",
                "Accept": "application/json"
            },
            timeout=self.timeout,
            verify=self.session.verify_tls,
            transport=self._transport
        )

    async def search(
        self,
        query: str,
        item_type: str,
        page: int = 1,
        per_page: int = 50,
        lookup: bool = False
    ) -> Dict[str, Any]:
        """
        Fetch sharees matching a query.

        Args:
            query: Search string
            item_type: "file" or "folder"
            page: 1-based page number
            per_page: Page size
            lookup: Query the global lookup server too

        Returns:
            Decoded JSON document
        """
        params = {
            "format": "json",
            "search": query,
            "itemType": item_type,
            "page": page,
            "perPage": per_page,
            "lookup": "true" if lookup else "false"
        }

        try:
            async with self._build_client() as client:
                response = await client.get(SHAREES_PATH, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Sharee request failed: {e}")
            raise OcsError(0, str(e)) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        meta = _ocs_meta(payload)

        if response.is_error:
            message = meta.get("message") or response.reason_phrase
            raise OcsError(response.status_code, str(message))

        if payload is None:
            raise OcsError(response.status_code, "Invalid JSON in sharee response")

        status_code = meta.get("statuscode")
        if status_code is not None and status_code not in OCS_SUCCESS_CODES:
            if not isinstance(status_code, int):
                status_code = response.status_code
            raise OcsError(status_code, str(meta.get("message") or ""))

        return payload
