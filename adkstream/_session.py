"""Sessions resource: lazily create the conversation session the agent runs in."""

from __future__ import annotations

import logging
import random
import string
import threading
import time
from typing import TYPE_CHECKING

from ._exceptions import AdkStreamError, SessionError
from ._types import Session

if TYPE_CHECKING:
    from ._http import HTTPClient

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str) -> str:
    """``user_1718000000000_k3j9x0abq``: prefix, epoch millis, 9 base36 chars."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class Sessions:
    """client.sessions: create once, reuse for every message until reset."""

    def __init__(self, http: HTTPClient, app_name: str):
        self._http = http
        self._app_name = app_name
        # Held across the creation POST so concurrent sends create the session once
        self._lock = threading.Lock()
        self._session = self._new_session()

    def _new_session(self) -> Session:
        return Session(
            app_name=self._app_name,
            user_id=generate_id("user"),
            session_id=generate_id("session"),
        )

    @property
    def current(self) -> Session:
        return self._session

    @property
    def path(self) -> str:
        s = self._session
        return f"/apps/{s.app_name}/users/{s.user_id}/sessions/{s.session_id}"

    def ensure(self) -> Session:
        """Create the session on the backend unless that already succeeded.

        Raises:
            SessionError: creation failed; the next call tries again.
        """
        with self._lock:
            session = self._session
            if session.created:
                logger.debug("Session already exists, skipping creation")
                return session

            logger.info("Creating session %s for user %s", session.session_id, session.user_id)
            try:
                resp = self._http.request("POST", self.path, json={"state": None})
            except AdkStreamError as e:
                logger.error("Failed to create session: %s", e.message)
                raise SessionError(
                    f"Failed to create session: {e.message}",
                    status_code=e.status_code,
                    request_id=e.request_id,
                    method=e.method,
                    path=e.path,
                ) from e

            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("state"), dict):
                session.state = body["state"]
            session.created = True
            logger.debug("Session created successfully: %s", body)
            return session

    def reset(self) -> Session:
        """Start a new conversation with fresh identifiers."""
        with self._lock:
            self._session = self._new_session()
            return self._session
