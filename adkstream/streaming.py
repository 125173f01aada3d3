"""
ADK server-sent-event decoding.

Classifies framed lines of a ``/run_sse`` response body and maps each
``data:`` payload onto typed stream events.

Wire format:
    event: message
    data: {"content": {"parts": [{"text": "Hi"}]}, "partial": true, "author": "coordinator"}

A payload may carry several ``content.parts``; every part becomes its own
event, in part order, followed by at most one author tag.
"""

from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
EVENT_PREFIX = "event:"
DONE_SENTINEL = "[DONE]"


class StreamEventType(str, Enum):
    """Decoded event kinds."""

    TEXT_DELTA = "text-delta"
    FUNCTION_CALL = "function-call"
    FUNCTION_RESULT = "function-result"
    AUTHOR_TAG = "author-tag"
    TERMINAL = "terminal"


@dataclass
class StreamEvent:
    """Base class for all stream events."""

    type: StreamEventType
    raw: dict[str, Any]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> list["StreamEvent"]:
        """Map one ADK event payload onto stream events.

        Each content part yields at most one event: text first, then a
        function call, then a function response. A top-level ``author``
        yields an AuthorTagEvent after all parts.

        Returns:
            List of StreamEvent objects in source order (possibly empty).
        """
        events: list[StreamEvent] = []
        partial = bool(data.get("partial"))

        content = data.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if isinstance(parts, list):
            for part in parts:
                if not isinstance(part, dict):
                    continue

                text = part.get("text")
                function_call = part.get("functionCall")
                function_response = part.get("functionResponse")

                if isinstance(text, str) and text:
                    events.append(
                        TextDeltaEvent(
                            type=StreamEventType.TEXT_DELTA,
                            raw=data,
                            text=text,
                            partial=partial,
                        )
                    )
                elif isinstance(function_call, dict) and function_call.get("name"):
                    args = function_call.get("args")
                    events.append(
                        FunctionCallEvent(
                            type=StreamEventType.FUNCTION_CALL,
                            raw=data,
                            agent_id=str(function_call["name"]),
                            args=args if isinstance(args, dict) else {},
                        )
                    )
                elif isinstance(function_response, dict) and function_response.get("name"):
                    response = function_response.get("response")
                    result = response.get("result") if isinstance(response, dict) else None
                    # A response without a result carries nothing to display
                    if result:
                        if not isinstance(result, str):
                            result = json.dumps(result)
                        events.append(
                            FunctionResultEvent(
                                type=StreamEventType.FUNCTION_RESULT,
                                raw=data,
                                agent_id=str(function_response["name"]),
                                result_text=result,
                            )
                        )

        author = data.get("author")
        if isinstance(author, str) and author:
            events.append(
                AuthorTagEvent(type=StreamEventType.AUTHOR_TAG, raw=data, agent_id=author)
            )

        return events


@dataclass
class TextDeltaEvent(StreamEvent):
    """Text from the agent.

    A partial delta is an incremental fragment; a final one is the complete
    text of the message so far.
    """

    text: str
    partial: bool = False


@dataclass
class FunctionCallEvent(StreamEvent):
    """The coordinator routed the request to a specialist agent."""

    agent_id: str
    args: dict[str, Any]


@dataclass
class FunctionResultEvent(StreamEvent):
    """A specialist agent returned its answer."""

    agent_id: str
    result_text: str


@dataclass
class AuthorTagEvent(StreamEvent):
    """Attribution of the payload to an agent."""

    agent_id: str


@dataclass
class TerminalEvent(StreamEvent):
    """Stream termination sentinel."""


class EventDecoder:
    """
    Decoder for ADK SSE lines.

    Stateless apart from ``last_event_type``, which remembers the most recent
    ``event:`` line for diagnostics.
    """

    def __init__(self) -> None:
        self.last_event_type: str | None = None

    def decode(self, line: str) -> list[StreamEvent]:
        """
        Decode a single framed line.

        Args:
            line: Protocol line without its trailing newline

        Returns:
            Events carried by the line; empty for keep-alives, comments,
            ``event:`` lines and malformed payloads.
        """
        if line.startswith(DATA_PREFIX):
            payload = line[len(DATA_PREFIX) :].strip()
            if not payload:
                return []
            if payload == DONE_SENTINEL:
                logger.debug("Stream completed with %s", DONE_SENTINEL)
                return [TerminalEvent(type=StreamEventType.TERMINAL, raw={})]

            try:
                data = json.loads(payload)
            except json.JSONDecodeError:
                logger.warning("Failed to parse SSE JSON: %s", payload[:200])
                return []

            if not isinstance(data, dict):
                logger.warning("Ignoring non-object SSE payload: %s", payload[:200])
                return []
            return StreamEvent.from_dict(data)

        if line.startswith(EVENT_PREFIX):
            self.last_event_type = line[len(EVENT_PREFIX) :].strip()
            logger.debug("Event type: %s", self.last_event_type)

        return []
