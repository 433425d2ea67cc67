"""
Airflow Transport - Authenticated HTTP client for the Airflow REST API.

Performs the create/read/update/delete calls the reconciler needs and
classifies every response into a small closed set of outcomes, so the
reconciler branches on typed outcomes rather than raw status codes.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from config import AirflowConfig

logger = logging.getLogger(__name__)


class RemoteOutcome(Enum):
    """Classified result of a remote call."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FAILURE = "failure"

    @classmethod
    def from_status(cls, status: int) -> "RemoteOutcome":
        if 200 <= status < 300:
            return cls.SUCCESS
        if status == 404:
            return cls.NOT_FOUND
        if status == 409:
            return cls.CONFLICT
        return cls.FAILURE


@dataclass
class RemoteResponse:
    """Response of a remote call: outcome, HTTP status, decoded body, message."""

    outcome: RemoteOutcome
    status: Optional[int] = None
    body: Optional[Dict[str, Any]] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is RemoteOutcome.SUCCESS


class AuthenticationError(Exception):
    """Raised when the API token can't be obtained."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


def _error_message(status: int, body: Any, text: str) -> str:
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else json.dumps(detail)
    return text or f"HTTP {status}"


class AirflowClient:
    """
    Client for the Airflow stable REST API.

    Each call opens its own session. Authentication uses either a static
    bearer token or a token obtained once per client instance from the
    basic-auth login endpoint.
    """

    def __init__(self, config: AirflowConfig):
        self.config = config
        self._token: Optional[str] = config.oauth2_token or None

    # Resource operations

    async def create(
        self, collection: str, payload: Dict[str, Any]
    ) -> RemoteResponse:
        """POST a new object to a collection."""
        return await self._request("POST", self._collection_url(collection), payload)

    async def read(self, collection: str, identifier: str) -> RemoteResponse:
        """GET one object by identifier."""
        return await self._request("GET", self._object_url(collection, identifier))

    async def update(
        self,
        collection: str,
        identifier: str,
        payload: Dict[str, Any],
        update_mask: Optional[List[str]] = None,
    ) -> RemoteResponse:
        """PATCH one object, optionally restricting the write to update_mask."""
        params = None
        if update_mask:
            params = [("update_mask", name) for name in update_mask]
        return await self._request(
            "PATCH", self._object_url(collection, identifier), payload, params=params
        )

    async def delete(self, collection: str, identifier: str) -> RemoteResponse:
        """DELETE one object by identifier."""
        return await self._request("DELETE", self._object_url(collection, identifier))

    # Authentication

    async def login(self) -> str:
        """
        Exchange username/password for an access token.

        Returns:
            The access token, cached on this client.

        Raises:
            AuthenticationError: If the login endpoint rejects the credentials
                or can't be reached.
        """
        url = f"{self.config.base_endpoint.rstrip('/')}/auth/token"
        payload = {"username": self.config.username, "password": self.config.password}
        logger.debug("Using API Basic Auth")

        try:
            async with self._session() as session:
                async with session.post(url, json=payload) as response:
                    text = await response.text()
                    if response.status not in (200, 201):
                        raise AuthenticationError(
                            f"login to {url} failed: {response.status} - {text}",
                            status=response.status,
                        )
                    body = json.loads(text) if text else {}
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise AuthenticationError(f"login to {url} failed: {e}")

        token = body.get("access_token")
        if not token:
            raise AuthenticationError(f"login to {url} returned no access_token")

        self._token = token
        return token

    async def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token is None and self.config.uses_basic_auth:
            await self.login()
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # Private helper methods

    def _collection_url(self, collection: str) -> str:
        return f"{self.config.api_url}/{collection}"

    def _object_url(self, collection: str, identifier: str) -> str:
        return f"{self._collection_url(collection)}/{quote(str(identifier), safe='')}"

    def _session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        connector = None
        if self.config.disable_ssl_verification:
            connector = aiohttp.TCPConnector(ssl=False)
        return aiohttp.ClientSession(timeout=timeout, connector=connector)

    async def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[List[Any]] = None,
    ) -> RemoteResponse:
        """Perform one HTTP call and classify the result."""
        headers = await self._headers()

        try:
            async with self._session() as session:
                async with session.request(
                    method, url, headers=headers, json=payload, params=params
                ) as response:
                    status = response.status
                    text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {url} failed: {e}")
            return RemoteResponse(outcome=RemoteOutcome.FAILURE, message=str(e))

        logger.debug(f"{method} {url} -> {status}")

        body = None
        if text:
            try:
                body = json.loads(text)
            except json.JSONDecodeError:
                body = None

        outcome = RemoteOutcome.from_status(status)
        message = "" if outcome is RemoteOutcome.SUCCESS else _error_message(
            status, body, text
        )
        return RemoteResponse(
            outcome=outcome,
            status=status,
            body=body if isinstance(body, dict) else None,
            message=message,
        )
