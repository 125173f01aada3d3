"""Line framing for chunked server-sent-event bodies."""

from __future__ import annotations

import codecs
import logging

logger = logging.getLogger(__name__)


class LineFramer:
    """Turns arbitrarily split chunks into complete protocol lines.

    Only newline-terminated lines are ever returned. Whatever follows the last
    newline of a chunk stays pending and is prepended to the next chunk.

    Usage:
        framer = LineFramer()
        for chunk in response.iter_content(chunk_size=None):
            for line in framer.feed(chunk):
                ...
        framer.flush()
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """The partial line held back since the last newline."""
        return self._pending

    def feed(self, chunk: bytes | str) -> list[str]:
        """Add one chunk and return the lines it completed, in order."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return []

        parts = (self._pending + chunk).split("\n")
        self._pending = parts.pop()
        return [part[:-1] if part.endswith("\r") else part for part in parts]

    def flush(self) -> list[str]:
        """Finish the stream.

        A dangling line without its newline is incomplete and is dropped, so
        this always returns an empty list.
        """
        remainder = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if remainder.strip():
            logger.debug("Discarding unterminated line at end of stream: %s", remainder[:200])
        return []
