"""
Asynchronous HTTP client for the screening backend.

Uses ``httpx.AsyncClient`` so requests run on the same event loop as the
recognition engine and never block listening.
"""

import logging

import httpx

from src.core.exceptions import BackendRequestError

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin async wrapper around httpx for calling the screening backend.

    All failures are raised as ``BackendRequestError`` (or the subclass the
    caller asks for) with a category of "connection", "timeout", "http" or
    "network".

    Args:
        base_url: Base URL of the backend (e.g. "http://localhost:5000").
        timeout: Default request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout, transport=transport
        )

    async def request(
        self,
        method: str,
        path: str,
        error_cls: type[BackendRequestError] = BackendRequestError,
        **kwargs,
    ) -> httpx.Response:
        """Execute an HTTP request, mapping failures onto ``error_cls``.

        Args:
            method: HTTP method name ("get", "post").
            path: Endpoint path (e.g. "/send-data").
            error_cls: Exception type raised on failure.
            **kwargs: Passed through to httpx (json, timeout, etc.).

        Returns:
            The httpx Response object with a successful status code.
        """
        try:
            resp = await getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise error_cls(
                f"Backend is not reachable at {self._base_url}", category="connection"
            ) from None
        except httpx.TimeoutException:
            raise error_cls(
                "Request timed out. The backend may be overloaded.", category="timeout"
            ) from None
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = exc.response.text or str(exc)
            raise error_cls(
                f"Backend returned {status}: {detail}", category="http", status_code=status
            ) from None
        except httpx.HTTPError as exc:
            raise error_cls(f"Network error: {exc}", category="network") from None

    async def aclose(self) -> None:
        await self._client.aclose()
