"""
CLI display for aggregated agent replies.

- ExchangeDisplay: rich panels for the reply, routing banner and charts
- JsonDisplay: the raw result dictionary for scripting
"""

from __future__ import annotations

from collections.abc import Callable
import json
import time

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .._types import AggregatedResult, ChartDescriptor

COORDINATOR_DISPLAY_NAME = "Coordinator Agent"
SPECIALIST_PAUSE = 1.0  # seconds between routing banner and specialist reply


def agent_display_name(agent_id: str | None) -> str:
    """``budget_agent`` -> ``Budget Agent``."""
    if not agent_id:
        return COORDINATOR_DISPLAY_NAME
    return agent_id.replace("_", " ").replace("-", " ").title()


def chart_table(chart: ChartDescriptor) -> Table:
    """One row per label, one column per dataset."""
    table = Table(title=f"📊 {chart.title} ({chart.type})", show_lines=False)
    table.add_column("", style="bold")
    for dataset in chart.datasets:
        table.add_column(dataset.label, justify="right")
    for i, label in enumerate(chart.labels):
        row = [label]
        for dataset in chart.datasets:
            row.append(f"{dataset.data[i]:g}" if i < len(dataset.data) else "")
        table.add_row(*row)
    return table


class ExchangeDisplay:
    """Renders one exchange the way the chat view presents it.

    A routed exchange shows the coordinator's routing banner first and the
    specialist's answer after a short pause.
    """

    def __init__(
        self,
        console: Console | None = None,
        pause: float = SPECIALIST_PAUSE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.console = console or Console()
        self.pause = pause
        self._sleep = sleep

    def _reply(self, title: str, text: str, charts: list[ChartDescriptor] | None) -> None:
        self.console.print(
            Panel(Markdown(text), title=title, title_align="left", border_style="cyan")
        )
        for chart in charts or []:
            self.console.print(chart_table(chart))

    def show(self, result: AggregatedResult) -> None:
        if not result.ok:
            self.console.print(
                Panel(result.text, title="❌ Error", title_align="left", border_style="red")
            )
            if result.error:
                self.console.print(f"[dim]{result.error}[/dim]")
            return

        specialist = result.specialist_message()
        if specialist is None or result.routing_info is None:
            self._reply(agent_display_name(result.agent_name), result.text, result.charts)
            return

        self.console.print(
            Panel(
                result.routing_info.routing_message,
                title=COORDINATOR_DISPLAY_NAME,
                title_align="left",
                border_style="green",
            )
        )
        self._sleep(self.pause)
        self._reply(agent_display_name(specialist.agent_name), specialist.text, specialist.charts)


class JsonDisplay:
    """Prints the result dictionary as JSON."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show(self, result: AggregatedResult) -> None:
        self.console.print_json(json.dumps(result.to_dict()))
