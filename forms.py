from __future__ import annotations

import logging
from typing import Optional

import streamlit as st
from streamlit.delta_generator import DeltaGenerator

from capture import CaptureSession, CaptureState, DeviceError
from charts import TrendChart, build_temperature_figure
from constants import TEMP_UNIT
from errors import CameraUnavailable, FeverLogError, InvalidTemperature, InvalidTransition, UnreadableReading
from ocr import OcrPipeline, read_temperature
from store import LogStore, TemperatureDraft

logger = logging.getLogger(__name__)

FIELD_KEYS = ("temperature", "feeling", "medicines", "notes")
FLASH_KEY = "flash"


def _flash(level: str, message: str) -> None:
    st.session_state.setdefault(FLASH_KEY, []).append((level, message))


def render_flash() -> None:
    for level, message in st.session_state.pop(FLASH_KEY, []):
        getattr(st, level)(message)


# Callbacks run before the rerun, so they may still write widget state.
def _handle_submit(store: LogStore) -> None:
    draft = TemperatureDraft(
        temperature=st.session_state.get("temperature", ""),
        feeling=st.session_state.get("feeling", ""),
        medicines=st.session_state.get("medicines", ""),
        notes=st.session_state.get("notes", ""),
    )
    try:
        store.append(draft)
    except InvalidTemperature as e:
        # Leave the form as typed so the user can correct it.
        _flash("error", str(e))
        return
    for key in FIELD_KEYS:
        st.session_state[key] = ""
    _flash("success", "Entry saved.")


def render_entry_form(store: LogStore) -> None:
    st.subheader("Log new entry")
    with st.form("entry_form", clear_on_submit=False):
        st.text_input(f"Temperature ({TEMP_UNIT})", key="temperature", placeholder="e.g., 98.6")
        st.text_input("How are you feeling?", key="feeling", placeholder="e.g., Tired, headache")
        st.text_input("Medicines taken", key="medicines", placeholder="e.g., Ibuprofen 200mg")
        st.text_area("Notes", key="notes", height=80, placeholder="e.g., Drank lots of water.")
        st.form_submit_button("Save entry", type="primary", on_click=_handle_submit, args=(store,))


def _open_camera(session: CaptureSession) -> None:
    try:
        session.open()
    except FeverLogError as e:
        # Includes SessionBusy when a stale button fires on an open session.
        _flash("error", str(e))


def _capture_and_read(session: CaptureSession, pipeline: OcrPipeline) -> None:
    try:
        with st.spinner("Reading..."):
            outcome = read_temperature(session, pipeline)
    except (CameraUnavailable, InvalidTransition) as e:
        _flash("error", str(e))
        return
    if outcome.discarded:
        return
    if outcome.ok:
        # Populate, never submit: the user reviews the value first.
        st.session_state["temperature"] = f"{outcome.value:g}"
        _flash("success", f"Read {outcome.value:g}{TEMP_UNIT} from the thermometer. Review and save.")
    elif isinstance(outcome.error, UnreadableReading):
        _flash("warning", str(outcome.error))
    else:
        _flash("error", str(outcome.error))


def render_camera_panel(session: CaptureSession, pipeline: Optional[OcrPipeline]) -> None:
    if pipeline is None:
        st.caption("Set GEMINI_API_KEY to read temperatures from a thermometer photo.")
        return

    if session.state is CaptureState.CLOSED:
        st.button("📷 Read from thermometer", on_click=_open_camera, args=(session,))
        return

    st.markdown("**Point camera at thermometer**")
    if session.state is CaptureState.LIVE:
        try:
            st.image(session.preview(), channels="BGR", use_container_width=True)
        except (DeviceError, InvalidTransition) as e:
            logger.warning("Preview failed: %s", e)
            st.warning("Camera preview is not available.")
    busy = session.state is not CaptureState.LIVE
    col_read, col_cancel = st.columns(2)
    with col_read:
        st.button(
            "Reading..." if busy else "Capture & read",
            type="primary",
            disabled=busy,
            on_click=_capture_and_read,
            args=(session, pipeline),
        )
    with col_cancel:
        st.button("Cancel", on_click=session.cancel)


def render_history_table(store: LogStore) -> None:
    st.subheader("History")
    if not len(store):
        st.info("No entries yet.")
        return
    df = store.to_frame()
    st.dataframe(
        df,
        use_container_width=True,
        hide_index=True,
        column_config={
            "time": st.column_config.TextColumn("Time"),
            "temperature_f": st.column_config.NumberColumn(f"Temp ({TEMP_UNIT})", format="%.1f"),
            "zone": st.column_config.TextColumn("Zone"),
            "feeling": st.column_config.TextColumn("Feeling"),
            "medicines": st.column_config.TextColumn("Medicines"),
            "notes": st.column_config.TextColumn("Notes"),
        },
    )


class StreamlitChartSurface:
    """
    Holds the most recently derived chart. Store callbacks run before the
    Streamlit rerun, so the renderer swaps the chart here and the rerun
    draws it into a fresh placeholder.
    """

    def __init__(self) -> None:
        self.chart: Optional[TrendChart] = None

    def show(self, chart: TrendChart) -> None:
        self.chart = chart

    def draw(self, placeholder: DeltaGenerator) -> None:
        if self.chart is None:
            return
        placeholder.plotly_chart(build_temperature_figure(self.chart), use_container_width=True)
