"""Check-in client for Healthchecks.io-style ping endpoints."""

from __future__ import annotations

import platform
from typing import TYPE_CHECKING
from uuid import UUID

import httpx

from taskmon import PROGRAM_NAME
from taskmon.core.log import logger

if TYPE_CHECKING:
    from taskmon.core.config import Config

# https://healthchecks.io/docs/reliability_tips/
REQUEST_TIMEOUT = 10.0


class CheckinError(Exception):
    """A check-in could not be delivered or was rejected."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"{url}: {message}")


def make_user_agent(custom: str | None = None) -> str:
    """Build the User-Agent from the program name and host name.

    Examples:
        make_user_agent() → "task-mon - myhost"
        make_user_agent("nightly") → "nightly (task-mon - myhost)"
    """
    host = platform.node()
    base = f"{PROGRAM_NAME} - {host}" if host else PROGRAM_NAME

    if custom:
        return f"{custom} ({base})"
    return base


class CheckinClient:
    """Sends start and completion pings for one check.

    Every request is a single attempt bounded by REQUEST_TIMEOUT.
    Failures raise CheckinError; whether that is fatal is up to the
    caller.
    """

    def __init__(
        self,
        url_prefix: str,
        user_agent: str | None = None,
        verbose: bool = False,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            url_prefix: Ping URL of the check, without event suffix
            user_agent: Full User-Agent header value
            verbose: Log each request before sending it
            transport: httpx transport override (tests use
                httpx.MockTransport)
        """
        self.url_prefix = url_prefix.rstrip("/")
        self.verbose = verbose
        self._http_client = httpx.Client(
            timeout=httpx.Timeout(REQUEST_TIMEOUT),
            headers={"User-Agent": user_agent or make_user_agent()},
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: httpx.BaseTransport | None = None,
    ) -> CheckinClient:
        """Create a client for the check the configuration names."""
        return cls(
            url_prefix=config.url_prefix(),
            user_agent=make_user_agent(config.user_agent),
            verbose=config.verbose,
            transport=transport,
        )

    def notify_start(self, run_id: UUID | None = None) -> httpx.Response:
        """Ping that the task is starting.

        Args:
            run_id: Correlates this ping with the completion ping

        Returns:
            The 2xx response

        Raises:
            CheckinError: If the request failed or was rejected
        """
        return self._send("GET", f"{self.url_prefix}/start", run_id)

    def notify_complete(
        self,
        run_id: UUID | None,
        code: int | None,
        output: str,
    ) -> httpx.Response:
        """Ping that the task is done.

        A non-zero code marks the check as failed; a None code logs
        the event without changing the check's status. An empty
        output sends no body at all.

        Args:
            run_id: Run id of the matching start ping, if one was sent
            code: Exit code of the task, or None for a log-only ping
            output: Report text for the request body

        Returns:
            The 2xx response

        Raises:
            CheckinError: If the request failed or was rejected
        """
        event = "log" if code is None else str(code)
        content = output.encode("utf-8") if output else None
        return self._send(
            "POST", f"{self.url_prefix}/{event}", run_id, content=content
        )

    def _send(
        self,
        method: str,
        url: str,
        run_id: UUID | None,
        content: bytes | None = None,
    ) -> httpx.Response:
        params = {"rid": str(run_id)} if run_id is not None else None
        try:
            request = self._http_client.build_request(
                method, url, params=params, content=content
            )
        except httpx.InvalidURL as e:
            raise CheckinError(url, f"invalid URL: {e}") from e

        if self.verbose:
            logger.debug(
                "Sending request: {method} {url}",
                method=request.method,
                url=str(request.url),
                body_bytes=len(content) if content else 0,
            )

        try:
            response = self._http_client.send(request)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CheckinError(
                str(request.url),
                f"server responded {e.response.status_code}",
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise CheckinError(str(request.url), repr(e)) from e

        return response

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http_client.close()

    def __enter__(self) -> CheckinClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False
