"""Coordinator client: send messages to an ADK agent app and aggregate the streamed reply."""

from __future__ import annotations

import logging
import os
import threading

from ._aggregator import error_result
from ._exceptions import AdkStreamError, RequestCancelled, ValidationError
from ._http import HTTPClient
from ._session import Sessions
from ._streaming import ResponseStream
from ._types import AggregatedResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_APP_NAME = "coordinator"
DEFAULT_TIMEOUT = 300.0


def _env_timeout() -> float:
    raw = os.environ.get("ADKSTREAM_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(
            f"ADKSTREAM_TIMEOUT must be a number of seconds, got {raw!r}"
        ) from None


class CoordinatorClient:
    """Client for a coordinator agent served by an ADK API server.

    Usage:
        client = CoordinatorClient(base_url="http://localhost:8000")
        result = client.send_message("What is my savings rate?")
        print(result.agent_name, result.text)

    Unset arguments fall back to ``ADKSTREAM_BASE_URL``, ``ADKSTREAM_APP_NAME``,
    ``ADKSTREAM_API_KEY`` and ``ADKSTREAM_TIMEOUT``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        app_name: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        base_url = base_url or os.environ.get("ADKSTREAM_BASE_URL") or DEFAULT_BASE_URL
        self.app_name = app_name or os.environ.get("ADKSTREAM_APP_NAME") or DEFAULT_APP_NAME
        api_key = api_key or os.environ.get("ADKSTREAM_API_KEY")
        timeout = timeout if timeout is not None else _env_timeout()
        if timeout <= 0:
            raise ValidationError(f"timeout must be positive, got {timeout}")

        self._http = HTTPClient(base_url=base_url, api_key=api_key, timeout=timeout)
        self.sessions = Sessions(self._http, self.app_name)

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def user_id(self) -> str:
        return self.sessions.current.user_id

    @property
    def session_id(self) -> str:
        return self.sessions.current.session_id

    def reset_session(self) -> None:
        """Start a new conversation; the next message creates a fresh session."""
        self.sessions.reset()

    def _run_body(self, message: str) -> dict:
        session = self.sessions.current
        return {
            "appName": self.app_name,
            "userId": session.user_id,
            "sessionId": session.session_id,
            "newMessage": {"role": "user", "parts": [{"text": message}]},
            "streaming": True,
        }

    def stream_message(
        self, message: str, *, cancel: threading.Event | None = None
    ) -> ResponseStream:
        """Send a message and return the live event stream.

        Raises:
            SessionError: the session could not be created.
            RequestCancelled: ``cancel`` was already set.
            AdkStreamError: the request failed before streaming began.
        """
        if cancel is not None and cancel.is_set():
            raise RequestCancelled("Request cancelled by caller")
        self.sessions.ensure()
        logger.debug("Sending message to /run_sse for session %s", self.session_id)
        # Sending a message is not idempotent, so it is never retried
        resp = self._http.stream("POST", "/run_sse", retry=False, json=self._run_body(message))
        return ResponseStream(resp, cancel=cancel)

    def send_message(
        self, message: str, *, cancel: threading.Event | None = None
    ) -> AggregatedResult:
        """Send a message and wait for the aggregated reply.

        Transport and session failures come back as a result with
        ``status="error"``.

        Raises:
            RequestCancelled: ``cancel`` was set before the stream ended.
        """
        try:
            with self.stream_message(message, cancel=cancel) as stream:
                return stream.result()
        except RequestCancelled:
            logger.info("Request cancelled")
            raise
        except AdkStreamError as e:
            logger.error("API Error: %s", e.message)
            return error_result(e.message)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> CoordinatorClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
