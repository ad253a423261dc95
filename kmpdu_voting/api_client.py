"""Async HTTP client for the KMPDU portal API (ballots, elections, vote casting)."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import settings

logger = logging.getLogger(__name__)


class PortalApiError(Exception):
    """Raised when a portal API call fails or returns an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PortalApiClient:
    """Async portal client. Serves as both ballot source and vote sink."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or settings.API_BASE_URL
        self.token = token if token is not None else settings.API_TOKEN
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def initialize(self):
        """Create the underlying connection pool."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport
            )
            logger.info(f"Portal API client initialized for {self.base_url}")

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            logger.info("Portal API client closed")

    async def __aenter__(self) -> "PortalApiClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        await self.initialize()
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Portal API {method} {path} returned {e.response.status_code}")
            raise PortalApiError(
                f"{method} {path} failed with status {e.response.status_code}",
                status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Portal API {method} {path} unreachable: {e}")
            raise PortalApiError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PortalApiError(f"{method} {path} returned invalid JSON", status_code=response.status_code) from e

    async def get_ballot(self, member_id: str) -> Any:
        """Positions the member may vote on."""
        return await self._request("GET", f"/api/votes/ballot/{member_id}")

    async def cast_votes(self, user_id: str, votes: List[Dict[str, str]]) -> Optional[Dict[str, Any]]:
        """
        Submit votes for a user.

        Args:
            user_id: Member id (or user id when no member id exists)
            votes: List of {positionId, candidateId, electionId}

        Returns:
            Response body, usually carrying blockchainHash and verificationToken
        """
        return await self._request("POST", "/api/votes/cast", json={"userId": user_id, "votes": votes})

    async def get_elections(self) -> Any:
        return await self._request("GET", "/api/elections")

    async def get_results(self, election_id: str) -> Any:
        return await self._request("GET", f"/api/elections/{election_id}/results")
