"""Request gateway wrapping every call to the remote API.

Each call gets an explicit time budget, is cancelled when the budget runs
out, and fails with one of three normalized errors:

    - RequestTimeout: the budget was exceeded
    - NetworkError: no response was received
    - HttpError: a non-2xx response, carrying the server's detail

Retry policy belongs to callers; the gateway never retries.
"""

import asyncio
import logging
from typing import Any

import httpx

from docassist.client.errors import HttpError, NetworkError, RequestTimeout

logger = logging.getLogger(__name__)

FileField = tuple[str, tuple[str, bytes, str]]


def _error_detail(response: httpx.Response) -> str:
    """Extract the server's error detail, falling back to the status text."""
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict) and data.get("detail"):
        detail = data["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return fallback


class RequestGateway:
    """Bounded-time, normalized access to the remote API.

    Args:
        base_url: Root URL of the remote service.
        client: Optional preconfigured client (e.g. with a test transport).
            The gateway closes a client it created itself, never an injected one.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=None)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        json: dict[str, Any] | None = None,
        files: list[FileField] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Issue one request and return its decoded JSON body.

        Args:
            endpoint: Path relative to the base URL, e.g. ``/chat``.
            method: HTTP method.
            json: JSON body.
            files: Multipart file fields.
            timeout: Time budget in seconds; None for no explicit bound.

        Returns:
            Decoded JSON body, or None for an empty response.

        Raises:
            RequestTimeout: If the budget was exceeded.
            NetworkError: If no response was received.
            HttpError: If the response status is not 2xx.
        """
        url = f"{self._base_url}{endpoint}"
        request = self._client.request(method, url, json=json, files=files)

        try:
            if timeout is None:
                response = await request
            else:
                response = await asyncio.wait_for(request, timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            error = RequestTimeout(endpoint, timeout)
            logger.warning(f"{method} {endpoint}: {error}")
            raise error from e
        except httpx.RequestError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(f"{method} {endpoint} returned {response.status_code}: {detail}")
            raise HttpError(response.status_code, detail)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise HttpError(response.status_code, f"Invalid JSON response: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client if the gateway created it."""
        if self._owns_client:
            await self._client.aclose()
