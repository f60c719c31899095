"""
MOF Field Calculator - Streamlit Dashboard

Keypad screen for checking MOF installations in the field, plus a
small resource projection page.

Features:
- 4-digit readout with scroll-in entry and idle reset
- CT table with MOF, Max TR and peak power for the current reading
- AISS controller setting per row
- Screen light for dark cabinets
- Session stored per device through the API, kept locally when offline

Run with: streamlit run streamlit_app.py
"""

import os
import logging
import streamlit as st
import requests
from typing import Dict, Any, Optional

from core.digit_buffer import DIGITS
from core.projection import ProjectionCalculator, ResourceConfig
from core.session import MeterSession

from app.components.keypad import render_readout, render_keypad
from app.components.tables import (
    render_power_table,
    render_aiss_card,
    rows_to_dataframe,
)
from app.components.charts import (
    create_peak_power_chart,
    create_projection_chart,
    projection_dataframe,
)

logger = logging.getLogger(__name__)


# =========================================
# Configuration
# =========================================

API_URL = os.getenv("API_URL", "http://localhost:8000")
DEFAULT_DEVICE_ID = os.getenv("DEFAULT_DEVICE_ID", "FIELD-01")

CUSTOM_CSS = """
<style>
    .main .block-container {
        padding-top: 2rem;
        padding-bottom: 2rem;
    }

    [data-testid="stMetric"] {
        background: rgba(31, 41, 55, 0.6);
        border-radius: 10px;
        padding: 15px;
        border: 1px solid #374151;
    }

    [data-testid="stSidebar"] {
        background: linear-gradient(180deg, #1F2937 0%, #111827 100%);
    }

    .stButton > button {
        border-radius: 8px;
        font-weight: 600;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
"""


# =========================================
# API Helper Functions
# =========================================

def fetch_api(endpoint: str) -> Optional[Dict[str, Any]]:
    """GET from API."""
    try:
        response = requests.get(f"{API_URL}{endpoint}", timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.warning(f"API GET {endpoint} failed: {e}")
        return None


def put_api(endpoint: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """PUT to API."""
    try:
        response = requests.put(f"{API_URL}{endpoint}", json=data, timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.warning(f"API PUT {endpoint} failed: {e}")
        return None


def check_api_health() -> bool:
    """Check if API is available."""
    try:
        response = requests.get(f"{API_URL}/health", timeout=5)
        return response.status_code == 200
    except requests.exceptions.RequestException:
        return False


# =========================================
# Session State
# =========================================

def get_meter_session(device_id: str, api_online: bool) -> MeterSession:
    """
    Meter session for this browser tab.

    Created once per device, screen light included; the stored snapshot
    is loaded from the API when it is reachable.
    """
    key = f"meter_session::{device_id}"
    if key not in st.session_state:
        stored = fetch_api(f"/api/v1/sessions/{device_id}") if api_online else None
        data = None
        if stored and stored.get("stored"):
            data = {"digits": stored.get("digits"), "selected_index": stored.get("selected_index")}

        session, result = MeterSession.restore_with_result(data)
        if data is not None and not result.is_valid:
            st.session_state["restore_warning"] = result.status
        st.session_state[key] = session

    return st.session_state[key]


def persist(session: MeterSession, device_id: str, api_online: bool) -> None:
    """Store the snapshot through the API; offline sessions stay local."""
    if api_online:
        put_api(f"/api/v1/sessions/{device_id}", session.snapshot().to_dict())


# =========================================
# Sidebar
# =========================================

def render_sidebar():
    """Render the sidebar with controls."""
    with st.sidebar:
        st.title("⚡ MOF Calculator")
        st.markdown("---")

        api_online = check_api_health()
        if api_online:
            st.success("🟢 API Connected")
        else:
            st.warning("🟠 Offline - session kept locally")
            st.info(f"API URL: {API_URL}")

        st.markdown("---")

        st.subheader("📟 Device")
        device_id = st.text_input("Device ID", value=DEFAULT_DEVICE_ID, max_chars=64).strip()
        device_id = device_id or DEFAULT_DEVICE_ID

        st.markdown("---")
        st.subheader("📍 Navigation")
        page = st.radio(
            "Go to",
            ["📟 Meter", "📈 Projection", "ℹ️ About"],
            label_visibility="collapsed"
        )

    return device_id, api_online, page


# =========================================
# Meter Page
# =========================================

def render_meter_page(device_id: str, api_online: bool):
    """Render the keypad, readout and CT table."""
    session = get_meter_session(device_id, api_online)
    session.poll()

    warning = st.session_state.pop("restore_warning", None)
    if warning:
        st.warning(f"Stored session was {warning}; damaged fields were reset")

    left, right = st.columns([1, 2])

    with left:
        render_readout(
            session.reading_text,
            active=session.buffer.active,
            illuminated=session.illumination.is_on,
        )
        st.markdown("")

        key = render_keypad()
        if key is not None:
            if key in DIGITS:
                session.press_digit(key)
            elif key == "back":
                session.back()
            elif key == "clear":
                session.clear()
            persist(session, device_id, api_online)
            st.rerun()

        st.markdown("")
        light = st.toggle("💡 Screen light", value=session.illumination.is_on, key=f"screen_light::{device_id}")
        if light != session.illumination.is_on:
            session.set_illumination(light)
            st.rerun()

        selected = session.selected_row
        st.metric(
            f"Peak Power · CT {selected.ct}",
            selected.peak_power,
            help=f"{session.reading_text} × MOF {selected.mof:,.0f}"
        )

    with right:
        if session.inspection is not None:
            if render_aiss_card(session.inspection):
                session.dismiss_inspection()
                st.rerun()
            st.markdown("")

        select, inspect = render_power_table(session.rows, session.selected_index)
        if select is not None:
            session.select_row(select)
            persist(session, device_id, api_online)
            st.rerun()
        if inspect is not None:
            session.inspect_row(inspect)
            st.rerun()

        with st.expander("📊 Chart and export"):
            fig = create_peak_power_chart(session.rows, session.selected_index)
            st.plotly_chart(fig, use_container_width=True)

            df = rows_to_dataframe(session.rows)
            st.download_button(
                "Download CSV",
                df.to_csv(index=False),
                file_name=f"ct_table_{session.buffer.text}.csv",
                mime="text/csv"
            )


# =========================================
# Projection Page
# =========================================

def render_projection_page():
    """Render the resource projection page."""
    st.title("📈 Resource Projection")

    defaults = ResourceConfig()
    col1, col2 = st.columns(2)
    with col1:
        current = st.number_input("Current amount", min_value=0.0, value=float(defaults.current_amount), step=100.0)
        daily = st.number_input("Daily income", min_value=0.0, value=float(defaults.daily_income), step=10.0)
    with col2:
        target = st.number_input("Target amount", min_value=0.0, value=float(defaults.target_amount), step=100.0)
        bonus = st.slider("Bonus (%)", 0, 100, int(defaults.bonus_percentage))

    days = st.slider("Days to project", 7, 365, ProjectionCalculator.DEFAULT_DAYS)

    calculator = ProjectionCalculator(ResourceConfig(
        current_amount=current,
        daily_income=daily,
        target_amount=target,
        bonus_percentage=bonus,
    ))
    summary = calculator.summary(days)

    m1, m2, m3 = st.columns(3)
    days_to_target = summary["days_to_target"]
    m1.metric("Days to target", "n/a" if days_to_target is None else days_to_target)
    m2.metric("Completion", f"{summary['completion_percent']}%")
    m3.metric("Daily with bonus", f"{summary['daily_with_bonus']:,.1f}")

    fig = create_projection_chart(summary["series"], target)
    st.plotly_chart(fig, use_container_width=True)

    with st.expander("📋 Daily values"):
        df = projection_dataframe(summary["series"])
        st.dataframe(df, use_container_width=True)


# =========================================
# About Page
# =========================================

def render_about_page():
    """Render the about page."""
    st.title("ℹ️ About MOF Field Calculator")

    st.markdown("""
    ## Metering-Out-Fit checks on 22.9kV lines

    Type the meter reading on the keypad. The CT table shows, for every
    standard CT rating, what the installation should look like.

    | Column | Formula |
    |--------|---------|
    | MOF | PT ratio 120 × CT / 5 |
    | Max TR | CT × 35.7, rounded half-up |
    | Peak Power | reading × MOF |

    ### ⌨️ Keypad

    - Digits typed within 2 seconds scroll in from the right
    - A digit after a pause starts a new reading
    - **⌫** removes the last digit, **C** clears the readout

    ### 🔌 AISS

    Open a row's AISS setting to see the phase current, ground current and
    time delay for the smallest standard tier that covers its Max TR.

    ### 🛠️ Technology Stack

    - **Backend**: FastAPI + SQLAlchemy
    - **Frontend**: Streamlit + Plotly
    """)


# =========================================
# Main Application
# =========================================

def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="MOF Field Calculator",
        page_icon="⚡",
        layout="wide",
        initial_sidebar_state="expanded"
    )
    st.markdown(CUSTOM_CSS, unsafe_allow_html=True)

    device_id, api_online, page = render_sidebar()

    if page == "📟 Meter":
        render_meter_page(device_id, api_online)
    elif page == "📈 Projection":
        render_projection_page()
    elif page == "ℹ️ About":
        render_about_page()


if __name__ == "__main__":
    main()
