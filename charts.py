from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence, Tuple

import plotly.graph_objects as go

from constants import LINE_COLOR, TEMP_UNIT, Y_AXIS_MAX, Y_AXIS_MIN
from store import LogStore, TemperatureEntry
from utils.time import format_display
from zones import ZONES, SeverityZone, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendPoint:
    timestamp: datetime
    label: str
    temperature: float
    zone: str


@dataclass(frozen=True)
class ChartRegion:
    y_min: float
    y_max: float
    label: str
    color: str
    label_color: str


@dataclass(frozen=True)
class TrendChart:
    points: Tuple[TrendPoint, ...]
    y_range: Tuple[float, float]
    regions: Tuple[ChartRegion, ...]


def _regions(zones: Sequence[SeverityZone], lo: float, hi: float) -> Tuple[ChartRegion, ...]:
    # Clip bands to the axis; the outermost bands are stretched to the axis
    # edges so the whole plot area is painted.
    regions = []
    last = len(zones) - 1
    for i, zone in enumerate(zones):
        y0 = lo if i == 0 else max(zone.y_min, lo)
        y1 = hi if i == last else min(zone.y_max, hi)
        if y0 >= y1:
            continue
        regions.append(ChartRegion(y0, y1, zone.label, zone.color, zone.label_color))
    return tuple(regions)


def build_trend_chart(
    entries: Sequence[TemperatureEntry],
    *,
    zones: Sequence[SeverityZone] = ZONES,
    y_range: Tuple[float, float] = (Y_AXIS_MIN, Y_AXIS_MAX),
) -> TrendChart:
    """Derive the full chart description from scratch for ``entries``."""
    lo, hi = y_range
    ordered = sorted(entries, key=lambda e: e.timestamp)
    points = []
    for e in ordered:
        if not lo <= e.temperature <= hi:
            logger.debug("Reading %.1f at %s is outside the chart range", e.temperature, e.timestamp)
        points.append(
            TrendPoint(
                timestamp=e.timestamp,
                label=format_display(e.timestamp),
                temperature=e.temperature,
                zone=classify(e.temperature, zones).label,
            )
        )
    return TrendChart(points=tuple(points), y_range=(lo, hi), regions=_regions(zones, lo, hi))


def build_temperature_figure(chart: TrendChart, *, height: int = 450) -> go.Figure:
    fig = go.Figure()
    zone_colors = {r.label: r.label_color for r in chart.regions}

    # Severity bands sit beneath the data and take no hover events.
    for region in chart.regions:
        fig.add_hrect(
            y0=region.y_min,
            y1=region.y_max,
            fillcolor=region.color,
            line_width=0,
            layer="below",
            annotation_text=f"<b>{region.label}</b>",
            annotation_position="top left",
            annotation_font_color=region.label_color,
            annotation_font_size=11,
        )

    if chart.points:
        fig.add_trace(
            go.Scatter(
                x=[p.timestamp for p in chart.points],
                y=[p.temperature for p in chart.points],
                text=[p.label for p in chart.points],
                customdata=[p.zone for p in chart.points],
                mode="lines+markers",
                name=f"Temperature ({TEMP_UNIT})",
                line=dict(color=LINE_COLOR),
                marker=dict(size=8, color=[zone_colors.get(p.zone, LINE_COLOR) for p in chart.points]),
                hovertemplate="%{text}<br>%{y:.1f}" + TEMP_UNIT + " (%{customdata})<extra></extra>",
            )
        )

    fig.update_layout(
        template="simple_white",
        height=height,
        margin=dict(l=40, r=20, t=30, b=40),
        showlegend=False,
        xaxis_title="Time",
        yaxis_title=f"Temperature ({TEMP_UNIT})",
    )
    fig.update_yaxes(range=list(chart.y_range), autorange=False)
    return fig


class ChartSurface(Protocol):
    def show(self, chart: TrendChart) -> None:
        """Tear down whatever is displayed and draw ``chart`` in its place."""


class TrendRenderer:
    """
    Keeps a surface in sync with a LogStore: every store change rebuilds
    the whole chart description and hands it to the surface.
    """

    def __init__(self, store: LogStore, surface: ChartSurface) -> None:
        self._store = store
        self._surface = surface
        self.last_chart: Optional[TrendChart] = None
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(self._on_change)

    def _on_change(self, entries: Tuple[TemperatureEntry, ...]) -> None:
        self._render(entries)

    def _render(self, entries: Sequence[TemperatureEntry]) -> TrendChart:
        chart = build_trend_chart(entries)
        self._surface.show(chart)
        self.last_chart = chart
        return chart

    def refresh(self) -> TrendChart:
        return self._render(self._store.all())

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
