"""
Dashboard Components Module

Reusable UI components for the Streamlit dashboard.

Components:
- keypad: Readout and numeric keypad
- tables: CT table and AISS setting card
- charts: Plotly-based visualization components
"""

from .keypad import (
    render_readout,
    render_keypad,
)
from .tables import (
    render_power_table,
    render_aiss_card,
    rows_to_dataframe,
    peak_power_html,
)
from .charts import (
    create_peak_power_chart,
    create_projection_chart,
    projection_dataframe,
)

__all__ = [
    # Keypad
    "render_readout",
    "render_keypad",

    # Tables
    "render_power_table",
    "render_aiss_card",
    "rows_to_dataframe",
    "peak_power_html",

    # Charts
    "create_peak_power_chart",
    "create_projection_chart",
    "projection_dataframe",
]
