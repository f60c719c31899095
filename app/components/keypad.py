"""
Keypad and Readout Components

The readout shows the four-digit window as D.DDD. The keypad is a 3×4
grid of Streamlit buttons; a click returns the key so the page can feed
it to the meter session.
"""

import streamlit as st
from typing import Optional

KEY_ROWS = [
    ["7", "8", "9"],
    ["4", "5", "6"],
    ["1", "2", "3"],
    ["clear", "0", "back"],
]

KEY_LABELS = {
    "back": "⌫",
    "clear": "C",
}


def render_readout(reading_text: str, active: bool = False, illuminated: bool = False) -> None:
    """
    Render the meter readout.

    Args:
        reading_text: Reading formatted as D.DDD
        active: Entry in progress (digits scroll in)
        illuminated: Screen used as a work light
    """
    border = "#3B82F6" if active else "#374151"
    background = "#F9FAFB" if illuminated else "rgba(17, 24, 39, 0.9)"
    color = "#111827" if illuminated else "#F9FAFB"

    st.markdown(f"""
    <div style="
        background: {background};
        border: 2px solid {border};
        border-radius: 16px;
        padding: 20px;
        text-align: right;
    ">
        <div style="color: #9CA3AF; font-size: 12px; letter-spacing: 2px;">READING</div>
        <div style="
            color: {color};
            font-family: 'JetBrains Mono', monospace;
            font-size: 56px;
            font-weight: 800;
        ">{reading_text}</div>
    </div>
    """, unsafe_allow_html=True)


def render_keypad(key_prefix: str = "key") -> Optional[str]:
    """
    Render the numeric keypad.

    Returns:
        The key clicked on this run ('0'-'9', 'back', 'clear'), or None
    """
    pressed = None

    for row in KEY_ROWS:
        cols = st.columns(3)
        for col, key in zip(cols, row):
            with col:
                label = KEY_LABELS.get(key, key)
                help_text = "Clear (long press on ⌫)" if key == "clear" else None
                if st.button(label, key=f"{key_prefix}_{key}", use_container_width=True, help=help_text):
                    pressed = key

    return pressed
