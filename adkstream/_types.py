"""Dataclass models for aggregated agent responses and the chart schema."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Literal

from ._exceptions import ChartParseError

ChartType = Literal["line", "bar", "pie", "doughnut"]
CHART_TYPES = ("line", "bar", "pie", "doughnut")

Status = Literal["success", "error"]

_DATASET_KEYS = frozenset({"label", "data", "backgroundColor", "borderColor", "borderWidth"})
_CHART_KEYS = frozenset({"type", "title", "data"})
_CHART_DATA_KEYS = frozenset({"labels", "datasets"})


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


@dataclass(frozen=True)
class RoutingInfo:
    """The coordinator handed the request to a specialist agent."""

    called_agent: str
    routing_message: str

    def to_dict(self) -> dict[str, str]:
        return {"called_agent": self.called_agent, "routing_message": self.routing_message}


@dataclass
class ChartDataset:
    """One series of a chart. Styling fields are optional and passed through."""

    label: str
    data: list[float]
    background_color: str | list[str] | None = None
    border_color: str | None = None
    border_width: float | None = None
    # Renderer options we do not model (fill, tension, pointRadius, ...)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ChartDataset:
        if not isinstance(data, dict):
            raise ChartParseError("dataset must be an object")
        label = data.get("label")
        values = data.get("data")
        if not isinstance(label, str):
            raise ChartParseError("dataset label must be a string")
        if not isinstance(values, list) or not all(_is_number(v) for v in values):
            raise ChartParseError(f"dataset {label!r} data must be a list of numbers")

        background = data.get("backgroundColor")
        if background is not None and not (
            isinstance(background, str)
            or (isinstance(background, list) and all(isinstance(c, str) for c in background))
        ):
            raise ChartParseError(f"dataset {label!r} backgroundColor must be a color or list")
        border = data.get("borderColor")
        if border is not None and not isinstance(border, str):
            raise ChartParseError(f"dataset {label!r} borderColor must be a string")
        width = data.get("borderWidth")
        if width is not None and not _is_number(width):
            raise ChartParseError(f"dataset {label!r} borderWidth must be a number")

        return cls(
            label=label,
            data=values,
            background_color=background,
            border_color=border,
            border_width=width,
            extra={k: v for k, v in data.items() if k not in _DATASET_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"label": self.label, "data": list(self.data)}
        if self.background_color is not None:
            out["backgroundColor"] = self.background_color
        if self.border_color is not None:
            out["borderColor"] = self.border_color
        if self.border_width is not None:
            out["borderWidth"] = self.border_width
        out.update(self.extra)
        return out


@dataclass
class ChartDescriptor:
    """A chart embedded in agent text, in the shape the renderer consumes.

    Serialised form:
        {"type": "bar", "title": "...", "data": {"labels": [...], "datasets": [...]}}
    """

    type: ChartType
    title: str
    labels: list[str]
    datasets: list[ChartDataset]
    extra: dict[str, Any] = field(default_factory=dict)
    data_extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ChartDescriptor:
        """Validate a decoded chart object. Raises ChartParseError on any mismatch."""
        if not isinstance(data, dict):
            raise ChartParseError("chart must be an object")
        chart_type = data.get("type")
        if chart_type not in CHART_TYPES:
            raise ChartParseError(f"unsupported chart type: {chart_type!r}")
        title = data.get("title")
        if not isinstance(title, str):
            raise ChartParseError("chart title must be a string")

        body = data.get("data")
        if not isinstance(body, dict):
            raise ChartParseError("chart data must be an object")
        labels = body.get("labels")
        if not isinstance(labels, list) or not all(isinstance(lbl, str) for lbl in labels):
            raise ChartParseError("chart labels must be a list of strings")
        datasets = body.get("datasets")
        if not isinstance(datasets, list):
            raise ChartParseError("chart datasets must be a list")

        return cls(
            type=chart_type,
            title=title,
            labels=labels,
            datasets=[ChartDataset.from_dict(ds) for ds in datasets],
            extra={k: v for k, v in data.items() if k not in _CHART_KEYS},
            data_extra={k: v for k, v in body.items() if k not in _CHART_DATA_KEYS},
        )

    @classmethod
    def from_json(cls, text: str) -> ChartDescriptor:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ChartParseError(f"invalid chart JSON: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialise back to the wire shape, unmodelled keys included."""
        body: dict[str, Any] = {
            "labels": list(self.labels),
            "datasets": [ds.to_dict() for ds in self.datasets],
        }
        body.update(self.data_extra)
        out: dict[str, Any] = {"type": self.type, "title": self.title, "data": body}
        out.update(self.extra)
        return out


@dataclass(frozen=True)
class AggregatedResult:
    """Everything that happened during one request/response exchange."""

    text: str
    agent_name: str | None
    status: Status
    routing_info: RoutingInfo | None = None
    charts: list[ChartDescriptor] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def specialist_message(self) -> SpecialistMessage | None:
        """The follow-up message for a routed exchange, if there is one.

        When the coordinator routed the request, the primary message shows the
        routing banner and the answer itself belongs to the specialist.
        """
        if self.routing_info is None or not self.ok:
            return None
        called = self.routing_info.called_agent
        return SpecialistMessage(
            agent_id=called,
            agent_name=self.agent_name or called.replace("_", " ", 1),
            text=self.text,
            charts=self.charts,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the shape the rendering layer consumes."""
        out: dict[str, Any] = {"response": self.text, "status": self.status}
        if self.agent_name is not None:
            out["agent_name"] = self.agent_name
        if self.error is not None:
            out["error"] = self.error
        if self.routing_info is not None:
            out["routing_info"] = self.routing_info.to_dict()
        if self.charts:
            out["charts"] = [chart.to_dict() for chart in self.charts]
        return out


@dataclass(frozen=True)
class SpecialistMessage:
    """A specialist agent's contribution, shown after the routing banner."""

    agent_id: str
    agent_name: str
    text: str
    charts: list[ChartDescriptor] | None = None


@dataclass
class Session:
    """Identifiers of a conversation with the coordinator app."""

    app_name: str
    user_id: str
    session_id: str
    created: bool = False
    state: dict[str, Any] = field(default_factory=dict)
