"""ResponseStream context manager over a streamed /run_sse response."""

from __future__ import annotations

from collections.abc import Iterator
import logging
import threading

import requests

from ._aggregator import StreamAggregator
from ._exceptions import APIError, RequestCancelled
from ._types import AggregatedResult
from .streaming import StreamEvent

logger = logging.getLogger(__name__)


class ResponseStream:
    """Iterable stream of decoded events. Use as context manager or iterate directly.

    Usage:
        with client.stream_message("How are my savings doing?") as stream:
            for event in stream:
                print(stream.text)  # progressive text
        result = stream.result()

    ``cancel`` may be set from another thread; it is checked before every
    chunk read and after every chunk arrives. Calling :meth:`cancel` also
    closes the response so a blocked read returns.
    """

    def __init__(
        self,
        response: requests.Response,
        cancel: threading.Event | None = None,
        chunk_size: int | None = None,
    ):
        self._response = response
        self._cancel = cancel or threading.Event()
        self._chunk_size = chunk_size
        self._aggregator = StreamAggregator()
        self._closed = False
        self._consumed = False
        self._result: AggregatedResult | None = None

    def _close(self) -> None:
        """Close the underlying response (idempotent)."""
        if not self._closed:
            self._closed = True
            self._response.close()

    def _raise_if_cancelled(self) -> None:
        if self._cancel.is_set():
            self._close()
            raise RequestCancelled("Request cancelled by caller")

    def _chunks(self) -> Iterator[bytes | str]:
        it = iter(self._response.iter_content(chunk_size=self._chunk_size))
        while True:
            self._raise_if_cancelled()
            try:
                chunk = next(it)
            except StopIteration:
                return
            except (requests.RequestException, OSError, ValueError) as e:
                if self._cancel.is_set():
                    raise RequestCancelled("Request cancelled by caller") from e
                logger.error("Stream interrupted: %s", e)
                raise APIError(f"Stream interrupted: {e}", status_code=None) from e
            self._raise_if_cancelled()
            yield chunk

    def __iter__(self) -> Iterator[StreamEvent]:
        if self._consumed:
            return
        try:
            for chunk in self._chunks():
                yield from self._aggregator.feed(chunk)
                if self._aggregator.terminated:
                    break
            self._consumed = True
        finally:
            self._close()

    def __enter__(self) -> ResponseStream:
        return self

    def __exit__(self, *_: object) -> None:
        self._close()

    def cancel(self) -> None:
        """Abandon the stream. Iteration raises RequestCancelled at the next check."""
        self._cancel.set()
        self._close()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def text(self) -> str:
        """Visible text accumulated so far, for progressive display."""
        return self._aggregator.text

    def result(self) -> AggregatedResult:
        """Consume the rest of the stream and return the aggregated result.

        Raises:
            RequestCancelled: the stream was cancelled.
            APIError: the stream broke before it ended.
        """
        if self._result is not None:
            return self._result
        if not self._consumed:
            if self._closed and not self._cancel.is_set():
                raise APIError("Stream closed before it was fully read", status_code=None)
            for _ in self:
                pass
        self._raise_if_cancelled()
        self._result = self._aggregator.finish()
        return self._result
