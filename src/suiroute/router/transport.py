"""HTTP transport for the routing backend.

The transport owns the connection pool for the lifetime of a client. Callers
depend on the ``RouterTransport`` protocol so tests and alternative backends
can be injected.
"""

import json
import logging
from typing import Any, AsyncIterator, Optional, Protocol

import httpx

from suiroute.errors import ServerError, TransportError
from suiroute.router.cancel import CancelToken, run_cancellable

logger = logging.getLogger(__name__)


class RouterTransport(Protocol):
    """Transport operations the router components rely on."""

    async def fetch_json(
        self,
        path: str,
        body: Optional[dict] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Any:
        ...

    async def fetch_transaction(
        self,
        path: str,
        body: dict,
        cancel_token: Optional[CancelToken] = None,
    ) -> str:
        ...

    def fetch_event_stream(
        self,
        path: str,
        body: Optional[dict] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> AsyncIterator[Any]:
        ...

    async def aclose(self) -> None:
        ...


class HttpTransport:
    """httpx-backed transport.

    GET is used when there is no body, POST with a JSON body otherwise.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        stream_timeout: Optional[float] = None,
        headers: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize transport.

        Args:
            base_url: Router API root, e.g. "https://host/api/router"
            timeout: Timeout for regular requests (seconds)
            stream_timeout: Read timeout between streamed events (None = no limit)
            headers: Extra headers sent with every request
            transport: Optional httpx transport (used for mocking)
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.stream_timeout = stream_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json", **(headers or {})},
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def fetch_json(
        self,
        path: str,
        body: Optional[dict] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Any:
        """Request ``path`` and decode the JSON response."""
        response = await self._request(path, body, cancel_token)
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(
                f"Invalid JSON from {path}: {e}", status_code=response.status_code
            ) from e

    async def fetch_transaction(
        self,
        path: str,
        body: dict,
        cancel_token: Optional[CancelToken] = None,
    ) -> str:
        """Request a serialized transaction.

        The backend returns either a JSON string holding the serialized
        transaction or the transaction data object itself.
        """
        data = await self.fetch_json(path, body, cancel_token)
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            return json.dumps(data)
        raise ServerError(f"Unexpected transaction payload from {path}: {type(data).__name__}")

    async def fetch_event_stream(
        self,
        path: str,
        body: Optional[dict] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> AsyncIterator[Any]:
        """Stream newline-delimited JSON objects from ``path``.

        Lines prefixed with ``data:`` (server-sent events) are accepted, and
        blank or comment lines are skipped. Closing the iterator closes the
        HTTP stream.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        timeout = httpx.Timeout(self.timeout, read=self.stream_timeout)
        logger.debug(f"Opening event stream: {path}")

        try:
            async with self._client.stream("POST", path, json=body or {}, timeout=timeout) as response:
                if response.is_error:
                    await response.aread()
                    raise self._server_error(response)

                lines = response.aiter_lines()
                while True:
                    try:
                        line = await run_cancellable(anext(lines), cancel_token)
                    except StopAsyncIteration:
                        break

                    line = line.strip()
                    if not line or line.startswith(":"):
                        continue
                    if line.startswith("data:"):
                        line = line[len("data:"):].strip()

                    try:
                        yield json.loads(line)
                    except ValueError as e:
                        raise ServerError(f"Invalid event from {path}: {e}") from e

        except httpx.RequestError as e:
            logger.warning(f"Event stream {path} failed: {type(e).__name__}: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        logger.debug(f"Event stream closed by server: {path}")

    async def _request(
        self,
        path: str,
        body: Optional[dict],
        cancel_token: Optional[CancelToken],
    ) -> httpx.Response:
        if body is None:
            request = self._client.get(path)
        else:
            request = self._client.post(path, json=body)

        logger.debug(f"{'GET' if body is None else 'POST'} {self.base_url}{path}")

        try:
            response = await run_cancellable(request, cancel_token)
        except httpx.RequestError as e:
            logger.warning(f"Request to {path} failed: {type(e).__name__}: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        if response.is_error:
            raise self._server_error(response)
        return response

    @staticmethod
    def _server_error(response: httpx.Response) -> ServerError:
        """Build a ServerError carrying the backend's own message."""
        message = response.text
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            message = str(data.get("message") or data.get("error") or message)

        logger.warning(f"Router API error: {response.status_code} - {message}")
        return ServerError(message or response.reason_phrase, status_code=response.status_code)
