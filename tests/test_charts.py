from datetime import datetime, timedelta, timezone

import plotly.graph_objects as go

from charts import TrendRenderer, build_temperature_figure, build_trend_chart
from constants import TEMP_UNIT
from forms import StreamlitChartSurface
from store import LogStore, TemperatureDraft, TemperatureEntry

T0 = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)


def make_entries():
    return [
        TemperatureEntry(T0 + timedelta(hours=2), 103.5, "hot"),
        TemperatureEntry(T0, 98.6, "fine"),
        TemperatureEntry(T0 + timedelta(hours=1), 100.0),
    ]


class RecordingSurface:
    def __init__(self):
        self.shown = []

    def show(self, chart):
        self.shown.append(chart)


def test_trend_chart_points_are_time_ordered():
    chart = build_trend_chart(make_entries())
    assert [p.temperature for p in chart.points] == [98.6, 100.0, 103.5]
    assert [p.zone for p in chart.points] == ["Normal", "Low-grade", "High-grade"]
    assert chart.points[0].label == "2026-02-01 10:00:00"


def test_trend_chart_fixed_axis_and_regions_cover_it():
    chart = build_trend_chart([TemperatureEntry(T0, 104.9)])
    assert chart.y_range == (95.0, 106.0)
    assert [r.label for r in chart.regions] == ["Normal", "Low-grade", "Moderate", "High-grade"]
    assert chart.regions[0].y_min == 95.0
    assert chart.regions[-1].y_max == 106.0
    for below, above in zip(chart.regions, chart.regions[1:]):
        assert below.y_max == above.y_min


def test_trend_chart_is_idempotent():
    entries = make_entries()
    assert build_trend_chart(entries) == build_trend_chart(entries)


def test_off_scale_values_are_kept():
    chart = build_trend_chart([TemperatureEntry(T0, 108.0), TemperatureEntry(T0 + timedelta(minutes=5), 93.0)])
    assert [p.temperature for p in chart.points] == [108.0, 93.0]
    assert chart.y_range == (95.0, 106.0)


def test_build_temperature_figure_basic_properties():
    fig = build_temperature_figure(build_trend_chart(make_entries()), height=500)
    assert isinstance(fig, go.Figure)

    names = [t.name for t in fig.data]
    assert names == [f"Temperature ({TEMP_UNIT})"]
    assert list(fig.data[0].y) == [98.6, 100.0, 103.5]

    assert fig.layout.yaxis.title.text == f"Temperature ({TEMP_UNIT})"
    assert list(fig.layout.yaxis.range) == [95.0, 106.0]

    # One background band per zone, all drawn beneath the trace
    assert len(fig.layout.shapes) == 4
    assert all(s.layer == "below" for s in fig.layout.shapes)
    ann_texts = [a.text for a in fig.layout.annotations]
    for label in ["Normal", "Low-grade", "Moderate", "High-grade"]:
        assert f"<b>{label}</b>" in ann_texts


def test_build_temperature_figure_empty_log_still_has_bands():
    fig = build_temperature_figure(build_trend_chart([]))
    assert len(fig.data) == 0
    assert len(fig.layout.shapes) == 4


def test_renderer_redraws_on_every_append():
    store = LogStore(clock=iter([T0, T0 + timedelta(minutes=1)]).__next__)
    surface = RecordingSurface()
    renderer = TrendRenderer(store, surface)

    store.append(TemperatureDraft("99.5"))
    store.append(TemperatureDraft("101"))
    assert len(surface.shown) == 2
    assert [p.temperature for p in surface.shown[-1].points] == [99.5, 101.0]
    assert renderer.last_chart is surface.shown[-1]


def test_renderer_refresh_is_idempotent_and_close_unsubscribes():
    store = LogStore(clock=iter([T0, T0 + timedelta(minutes=1)]).__next__)
    surface = RecordingSurface()
    renderer = TrendRenderer(store, surface)
    store.append(TemperatureDraft("99.5"))

    first = renderer.refresh()
    second = renderer.refresh()
    assert first == second

    renderer.close()
    store.append(TemperatureDraft("101"))
    assert len(surface.shown) == 3


def test_streamlit_surface_replaces_chart():
    class Placeholder:
        def __init__(self):
            self.figures = []

        def plotly_chart(self, fig, **kwargs):
            self.figures.append(fig)

    store = LogStore(clock=iter([T0]).__next__)
    surface = StreamlitChartSurface()
    placeholder = Placeholder()
    surface.draw(placeholder)
    assert placeholder.figures == []

    TrendRenderer(store, surface).refresh()
    empty_chart = surface.chart
    store.append(TemperatureDraft("100.5"))
    assert surface.chart is not empty_chart
    surface.draw(placeholder)
    assert len(placeholder.figures) == 1
    assert list(placeholder.figures[0].data[0].y) == [100.5]
