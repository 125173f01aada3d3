"""Extraction of fenced chart blocks from agent text."""

from __future__ import annotations

import logging
import re

from ._exceptions import ChartParseError
from ._types import ChartDescriptor

logger = logging.getLogger(__name__)

CHART_FENCE = re.compile(r"```chart\n([\s\S]*?)\n```")


def extract_charts(text: str) -> tuple[str, list[ChartDescriptor]]:
    """Pull every valid ```chart block out of ``text``.

    Blocks are handled left to right. A block that parses is removed
    together with its fences; one that does not is left in place.

    Returns:
        The remaining text and the charts in the order they appeared.
    """
    charts: list[ChartDescriptor] = []
    pieces: list[str] = []
    last_end = 0

    for match in CHART_FENCE.finditer(text):
        try:
            chart = ChartDescriptor.from_json(match.group(1))
        except ChartParseError as e:
            logger.warning("Failed to parse chart data: %s", e)
            continue
        charts.append(chart)
        pieces.append(text[last_end : match.start()])
        last_end = match.end()

    if not charts:
        return text, charts

    pieces.append(text[last_end:])
    return "".join(pieces), charts
