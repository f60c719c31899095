"""
Core Module - MOF Field Calculator

This module contains the core logic of the MOF field calculator:
- Digit entry state machine (keypad readout)
- Long-press / short-press disambiguation
- CT / MOF / peak power calculations
- AISS controller setting lookup
- Meter session and snapshot validation (Snapshot-Guard)
- Resource projection calculator

These components are framework-agnostic and can be used by both
the API and the Streamlit dashboard.
"""

from .digit_buffer import (
    DigitBuffer,
    DigitBufferState,
    KeypadTiming,
    format_reading,
    parse_reading,
)
from .press_timer import PressTimer
from .metering import (
    CT_VALUES,
    MeteringConstants,
    PowerCalculator,
    PowerRow,
    calculate_power_table,
    round_half_up,
    split_peak_power,
)
from .aiss import AISS_CONFIG_TABLE, AissLookup, AissSetting, AissTier, lookup_aiss_setting
from .validators import (
    MeterSnapshot,
    SnapshotGuard,
    ValidationResult,
    sanitize_snapshot,
    validate_snapshot,
)
from .session import IlluminationStatus, MeterSession
from .projection import ProjectionCalculator, ProjectionPoint, ResourceConfig

__all__ = [
    # Digit entry
    "DigitBuffer",
    "DigitBufferState",
    "KeypadTiming",
    "format_reading",
    "parse_reading",
    "PressTimer",

    # Metering calculations
    "CT_VALUES",
    "MeteringConstants",
    "PowerCalculator",
    "PowerRow",
    "calculate_power_table",
    "round_half_up",
    "split_peak_power",

    # AISS lookup
    "AISS_CONFIG_TABLE",
    "AissLookup",
    "AissSetting",
    "AissTier",
    "lookup_aiss_setting",

    # Session and validation
    "MeterSnapshot",
    "SnapshotGuard",
    "ValidationResult",
    "sanitize_snapshot",
    "validate_snapshot",
    "IlluminationStatus",
    "MeterSession",

    # Projection
    "ProjectionCalculator",
    "ProjectionPoint",
    "ResourceConfig",
]

__version__ = "0.1.0"
