from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from capture import CaptureSession, OpenCVCamera
from charts import TrendRenderer
from config import Settings, load_settings
from forms import (
    StreamlitChartSurface,
    render_camera_panel,
    render_entry_form,
    render_flash,
    render_history_table,
)
from ocr import GeminiRecognizer, OcrPipeline
from store import LogStore

logger = logging.getLogger(__name__)


def _build_pipeline(settings: Settings) -> Optional[OcrPipeline]:
    if not settings.ocr_enabled:
        logger.info("No recognition API key configured; thermometer reading disabled")
        return None
    return OcrPipeline(GeminiRecognizer(api_key=settings.api_key, model=settings.ocr_model))


def _init_session(settings: Settings) -> None:
    # Everything here lives for one browser session only.
    if "log_store" in st.session_state:
        return
    store = LogStore()
    surface = StreamlitChartSurface()
    renderer = TrendRenderer(store, surface)
    renderer.refresh()
    st.session_state["log_store"] = store
    st.session_state["chart_surface"] = surface
    st.session_state["trend_renderer"] = renderer
    st.session_state["capture_session"] = CaptureSession(OpenCVCamera(rear_index=settings.camera_index))
    st.session_state["ocr_pipeline"] = _build_pipeline(settings)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(page_title="Fever Tracker", page_icon="🌡️", layout="wide")
    st.title("🌡️ Fever Tracker")
    st.caption("Log temperature readings and see the trend against fever severity zones.")

    _init_session(settings)
    store: LogStore = st.session_state["log_store"]
    surface: StreamlitChartSurface = st.session_state["chart_surface"]
    session: CaptureSession = st.session_state["capture_session"]

    render_flash()
    col_left, col_right = st.columns(2)
    with col_left:
        render_camera_panel(session, st.session_state["ocr_pipeline"])
        render_entry_form(store)
        render_history_table(store)
    with col_right:
        st.subheader("Temperature trend")
        surface.draw(st.empty())


if __name__ == "__main__":
    main()
