"""
Chart Components for Dashboard

Plotly charts for the CT table and the resource projection.
"""

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from typing import Any, Dict, List, Optional

from core.metering import PowerRow


# =========================================
# Color Schemes
# =========================================

COLORS = {
    "primary": "#3B82F6",    # Blue
    "peak": "#10B981",       # Green
    "target": "#FBBF24",     # Yellow
    "secondary": "#6B7280",  # Gray
    "text": "#F9FAFB",       # Light text
    "grid": "#374151",       # Grid lines
}


def get_default_layout(title: str = "", height: int = 400) -> dict:
    """Get default chart layout settings."""
    return {
        "title": {
            "text": title,
            "font": {"size": 16, "color": COLORS["text"]},
            "x": 0.5,
            "xanchor": "center"
        },
        "paper_bgcolor": "rgba(0,0,0,0)",
        "plot_bgcolor": "rgba(0,0,0,0)",
        "height": height,
        "margin": {"l": 60, "r": 40, "t": 60, "b": 60},
        "font": {"color": COLORS["text"], "size": 12},
        "xaxis": {
            "gridcolor": COLORS["grid"],
            "showgrid": True,
            "zeroline": False,
        },
        "yaxis": {
            "gridcolor": COLORS["grid"],
            "showgrid": True,
            "zeroline": False,
        },
        "hovermode": "x unified",
    }


# =========================================
# Peak Power Chart
# =========================================

def create_peak_power_chart(
    rows: List[PowerRow],
    selected_index: Optional[int] = None,
    title: str = "Peak Power by CT",
    height: int = 320
) -> go.Figure:
    """
    Bar chart of peak power across CT ratings.

    Args:
        rows: CT table rows
        selected_index: Row drawn in the highlight color
        title: Chart title
        height: Chart height in pixels

    Returns:
        Plotly Figure object
    """
    labels = [str(row.ct) for row in rows]
    values = np.array([row.peak_power_raw for row in rows], dtype=float)

    colors = np.full(len(rows), COLORS["secondary"], dtype=object)
    if selected_index is not None and 0 <= selected_index < len(rows):
        colors[selected_index] = COLORS["primary"]

    fig = go.Figure(go.Bar(
        x=labels,
        y=values,
        marker_color=colors.tolist(),
        text=[row.peak_power for row in rows],
        hovertemplate="CT %{x}<br>Peak %{text}<extra></extra>",
    ))

    layout = get_default_layout(title, height)
    layout["xaxis"]["title"] = "CT"
    layout["xaxis"]["type"] = "category"
    layout["yaxis"]["title"] = "Peak Power"
    fig.update_layout(**layout)

    return fig


# =========================================
# Projection Chart
# =========================================

def projection_dataframe(series: List[Dict[str, Any]]) -> pd.DataFrame:
    """Projection series as a DataFrame indexed by date."""
    df = pd.DataFrame(series, columns=["date", "amount", "is_peak"])
    df["date"] = pd.to_datetime(df["date"])
    return df.set_index("date")


def create_projection_chart(
    series: List[Dict[str, Any]],
    target_amount: float,
    title: str = "Resource Projection",
    height: int = 380
) -> go.Figure:
    """
    Area chart of the projected balance with the target line.

    Days at or above the target are drawn in the peak color.

    Args:
        series: Points from ProjectionCalculator.summary()["series"]
        target_amount: Horizontal target line
        title: Chart title
        height: Chart height in pixels

    Returns:
        Plotly Figure object
    """
    df = projection_dataframe(series)
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=df.index,
        y=df["amount"],
        mode="lines",
        name="Balance",
        line=dict(color=COLORS["primary"], width=2),
        fill="tozeroy",
        fillcolor="rgba(59, 130, 246, 0.25)",
        hovertemplate="%{x|%b %d}<br>%{y:,.0f}<extra></extra>",
    ))

    peak = df[df["is_peak"]]
    if not peak.empty:
        fig.add_trace(go.Scatter(
            x=peak.index,
            y=peak["amount"],
            mode="markers",
            name="Target reached",
            marker=dict(color=COLORS["peak"], size=6),
            hoverinfo="skip",
        ))

    fig.add_hline(
        y=target_amount,
        line_dash="dash",
        line_color=COLORS["target"],
        annotation_text=f"Target {target_amount:,.0f}",
        annotation_position="top left",
    )

    layout = get_default_layout(title, height)
    layout["yaxis"]["title"] = "Amount"
    layout["legend"] = {"orientation": "h", "y": -0.2}
    fig.update_layout(**layout)

    return fig
