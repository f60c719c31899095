"""
CT Table and AISS Card Components

Renders the per-CT rows for the current reading with the selected row
highlighted, and the AISS setting card opened from a row.
"""

import streamlit as st
import pandas as pd
from typing import List, Optional, Tuple

from core.aiss import AissSetting
from core.metering import PowerRow, split_peak_power

SELECTED_COLOR = "#3B82F6"
ROW_COLOR = "rgba(31, 41, 55, 0.6)"


def rows_to_dataframe(rows: List[PowerRow]) -> pd.DataFrame:
    """CT table as a DataFrame for download or st.dataframe."""
    return pd.DataFrame([
        {
            "CT": row.ct,
            "MOF": int(row.mof) if float(row.mof).is_integer() else row.mof,
            "Max TR": row.max_tr,
            "Peak Power": row.peak_power,
        }
        for row in rows
    ])


def peak_power_html(row: PowerRow) -> str:
    """Peak power with the fraction drawn smaller for large values."""
    integer_part, fraction = split_peak_power(row)
    if not fraction:
        return integer_part
    return f"{integer_part}<span style='font-size: 0.6em; opacity: 0.7;'>{fraction}</span>"


def render_power_table(
    rows: List[PowerRow],
    selected_index: int,
    key_prefix: str = "row"
) -> Tuple[Optional[int], Optional[int]]:
    """
    Render the CT table with select / AISS buttons on each row.

    Returns:
        Tuple of (row index to select, row index to inspect); each None
        when not clicked on this run
    """
    select, inspect = None, None

    header = st.columns([1, 1.2, 1.2, 2, 1, 1])
    for col, title in zip(header, ["CT", "MOF", "Max TR", "Peak Power", "", ""]):
        col.markdown(f"**{title}**")

    for i, row in enumerate(rows):
        cols = st.columns([1, 1.2, 1.2, 2, 1, 1])
        background = SELECTED_COLOR if i == selected_index else ROW_COLOR

        cells = [f"{row.ct}", f"{row.mof:,.0f}", f"{row.max_tr:,}", peak_power_html(row)]
        for col, cell in zip(cols[:4], cells):
            col.markdown(
                f"<div style='background: {background}; padding: 6px 10px; "
                f"border-radius: 6px; font-family: monospace;'>{cell}</div>",
                unsafe_allow_html=True
            )

        if cols[4].button("Select", key=f"{key_prefix}_select_{i}", disabled=i == selected_index):
            select = i
        if cols[5].button("AISS", key=f"{key_prefix}_aiss_{i}", help="Long press on a row"):
            inspect = i

    return select, inspect


def render_aiss_card(setting: AissSetting) -> bool:
    """
    Render the AISS setting card.

    Returns:
        True if the card was dismissed on this run
    """
    st.markdown(f"""
    <div style="
        background: linear-gradient(135deg, #1e3a5f 0%, #0d1b2a 100%);
        border: 1px solid #2d4a6f;
        border-radius: 12px;
        padding: 20px;
    ">
        <div style="color: #93C5FD; font-size: 12px; letter-spacing: 2px;">
            AISS SETTING · CT {setting.ct} · MAX TR {setting.max_tr:,} kVA
        </div>
        <table style="width: 100%; margin-top: 12px; color: #F9FAFB;">
            <tr><td>Phase current</td><td style="text-align: right;"><b>{setting.phase_current} A</b></td></tr>
            <tr><td>Ground current</td><td style="text-align: right;"><b>{setting.ground_current} A</b></td></tr>
            <tr><td>Time delay</td><td style="text-align: right;"><b>{setting.time_delay} s</b></td></tr>
        </table>
    </div>
    """, unsafe_allow_html=True)

    return st.button("Close", key="aiss_close")
