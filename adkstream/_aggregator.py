"""Folding decoded stream events into a single aggregated result."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging

from ._exceptions import AggregatorStateError
from ._framing import LineFramer
from ._types import AggregatedResult, ChartDescriptor, RoutingInfo
from .charts import extract_charts
from .streaming import (
    AuthorTagEvent,
    EventDecoder,
    FunctionCallEvent,
    FunctionResultEvent,
    StreamEvent,
    TerminalEvent,
    TextDeltaEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_AGENT_NAME = "coordinator_agent"
EMPTY_RESPONSE_TEXT = "No response received"
ERROR_RESPONSE_TEXT = (
    "Sorry, I encountered an error while processing your request. Please try again."
)


@dataclass
class AggregationState:
    """Mutable accumulator for one in-flight request."""

    visible_text: str = ""
    agent_name: str | None = None
    routing_info: RoutingInfo | None = None
    charts: list[ChartDescriptor] = field(default_factory=list)


def routing_display_name(agent_id: str) -> str:
    """``market_analyst_agent`` -> ``MARKET ANALYST``."""
    name = agent_id.replace("_agent", "", 1)
    return name.replace("_", " ").replace("-", " ").strip().upper()


def routing_message(agent_id: str) -> str:
    return f"🔄 Routing your request to {routing_display_name(agent_id)} specialist..."


def apply_event(state: AggregationState, event: StreamEvent) -> None:
    """Apply one decoded event to ``state``."""
    if isinstance(event, TextDeltaEvent):
        if event.partial:
            state.visible_text += event.text
        else:
            # A final delta supersedes every partial seen so far
            state.visible_text = event.text

    elif isinstance(event, FunctionCallEvent):
        logger.debug("Function call detected: %s %s", event.agent_id, event.args)
        if state.routing_info is None:
            state.routing_info = RoutingInfo(
                called_agent=event.agent_id, routing_message=routing_message(event.agent_id)
            )

    elif isinstance(event, FunctionResultEvent):
        logger.debug("Function response from: %s", event.agent_id)
        state.visible_text = event.result_text
        state.agent_name = event.agent_id

    elif isinstance(event, AuthorTagEvent):
        state.agent_name = event.agent_id


def build_result(state: AggregationState) -> AggregatedResult:
    """Assemble the success result from the finished state."""
    return AggregatedResult(
        text=state.visible_text or EMPTY_RESPONSE_TEXT,
        agent_name=state.agent_name or DEFAULT_AGENT_NAME,
        status="success",
        routing_info=state.routing_info,
        charts=list(state.charts) if state.charts else None,
    )


def error_result(detail: str) -> AggregatedResult:
    """Result for a failed exchange. Never carries partial state."""
    return AggregatedResult(
        text=ERROR_RESPONSE_TEXT,
        agent_name=None,
        status="error",
        error=detail,
    )


class AggregatorPhase(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    ENDED = "ended"


class StreamAggregator:
    """Chunks in, one AggregatedResult out.

    Usage:
        aggregator = StreamAggregator()
        for chunk in chunks:
            aggregator.feed(chunk)
            if aggregator.terminated:
                break
        result = aggregator.finish()
    """

    def __init__(self) -> None:
        self._framer = LineFramer()
        self._decoder = EventDecoder()
        self._state = AggregationState()
        self._phase = AggregatorPhase.IDLE
        self._terminated = False

    @property
    def phase(self) -> AggregatorPhase:
        return self._phase

    @property
    def terminated(self) -> bool:
        """True once the termination sentinel has been seen."""
        return self._terminated

    @property
    def text(self) -> str:
        """Visible text so far, fences included."""
        return self._state.visible_text

    @property
    def state(self) -> AggregationState:
        return self._state

    def feed(self, chunk: bytes | str) -> list[StreamEvent]:
        """Frame, decode and apply one chunk. Returns the events applied."""
        if self._phase is AggregatorPhase.ENDED:
            raise AggregatorStateError("cannot feed a finished aggregator")
        self._phase = AggregatorPhase.STREAMING

        applied: list[StreamEvent] = []
        for line in self._framer.feed(chunk):
            if self._terminated:
                break
            for event in self._decoder.decode(line):
                if isinstance(event, TerminalEvent):
                    self._terminated = True
                    applied.append(event)
                    break
                apply_event(self._state, event)
                applied.append(event)
        return applied

    def finish(self) -> AggregatedResult:
        """End the stream, extract charts and build the result. Runs once."""
        if self._phase is AggregatorPhase.ENDED:
            raise AggregatorStateError("aggregator already finished")
        self._phase = AggregatorPhase.ENDED

        self._framer.flush()
        text, charts = extract_charts(self._state.visible_text)
        self._state.visible_text = text
        self._state.charts.extend(charts)
        logger.debug("Final response: %s", text[:200])
        return build_result(self._state)
