"""
adkstream - Python client for ADK coordinator agents

Streams agent replies over server-sent events and folds them into one result.
"""

__version__ = "0.1.0"

from ._aggregator import AggregationState, StreamAggregator, apply_event
from ._exceptions import (
    AdkStreamError,
    AggregatorStateError,
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RequestCancelled,
    SessionError,
    ValidationError,
)
from ._framing import LineFramer
from ._streaming import ResponseStream
from ._types import (
    AggregatedResult,
    ChartDataset,
    ChartDescriptor,
    RoutingInfo,
    SpecialistMessage,
)
from .charts import extract_charts
from .client import CoordinatorClient
from .streaming import EventDecoder

__all__ = [
    "APIError",
    "AdkStreamError",
    "AggregatedResult",
    "AggregationState",
    "AggregatorStateError",
    "AuthenticationError",
    "ChartDataset",
    "ChartDescriptor",
    # Main client
    "CoordinatorClient",
    "EventDecoder",
    "LineFramer",
    "NotFoundError",
    "RateLimitError",
    "RequestCancelled",
    "ResponseStream",
    "RoutingInfo",
    "SessionError",
    "SpecialistMessage",
    "StreamAggregator",
    "ValidationError",
    "apply_event",
    "extract_charts",
]
