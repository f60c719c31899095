"""
Metering Calculations for MOF / CT Peak Power

This module turns a live instrument reading into the per-CT table a field
technician uses to check a metering-out-fit (MOF) installation. Every row is
derived from the same reading; nothing here keeps state.

Key Metrics:
- MOF: Metering multiplier (PT ratio × CT ratio)
- Max TR: Estimated maximum transformer capacity for the CT rating
- Peak Power: Reading scaled by the MOF
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict, Any, List, Tuple

logger = logging.getLogger(__name__)


# 한전 표준 MOF CT 규격 (standard MOF CT primary ratings, amps)
CT_VALUES: Tuple[int, ...] = (
    5, 10, 15, 20, 30, 40, 50, 75, 100, 150, 200, 250, 300, 400, 500, 600, 750, 800
)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, ties away from zero.

    Python's built-in round() uses banker's rounding, so round(178.5)
    gives 178 where the data sheet says 179. The shortest decimal repr is
    rounded instead of the binary value so that 15 × 35.7 behaves like
    the 535.5 printed on the data sheet.
    """
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class MeteringConstants:
    """
    Constants used in MOF calculations.

    Defaults match the 22.9kV distribution standard and can be
    overridden for other supply arrangements.
    """

    PT_RATIO: float = 120                  # 13200 / 110 V
    CT_SECONDARY: float = 5                # A, rated CT secondary
    MAX_TR_MULTIPLIER: float = 35.7        # kVA of transformer per CT amp
    CT_VALUES: Tuple[int, ...] = field(default_factory=lambda: CT_VALUES)


@dataclass(frozen=True)
class PowerRow:
    """
    One row of the CT table.

    Attributes:
        ct: CT primary rating (A)
        mof: Metering multiplier
        max_tr: Estimated maximum transformer capacity (kVA)
        peak_power: Display string for the peak power
        peak_power_raw: Unformatted reading × mof
    """
    ct: int
    mof: float
    max_tr: int
    peak_power: str
    peak_power_raw: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ct": self.ct,
            "mof": self.mof,
            "max_tr": self.max_tr,
            "peak_power": self.peak_power,
            "peak_power_raw": self.peak_power_raw,
        }


class PowerCalculator:
    """
    Calculator for the CT / MOF / peak power table.

    All methods are pure: the same reading always yields the same rows,
    in the same order as the configured CT list.

    Example:
        calc = PowerCalculator()
        rows = calc.calculate_table(0.450)
        print(rows[1].peak_power)  # "108.00" for CT=10
    """

    def __init__(self, constants: Optional[MeteringConstants] = None):
        """
        Initialize the power calculator.

        Args:
            constants: Custom metering constants. If None, uses defaults.
        """
        self.constants = constants or MeteringConstants()

    def calculate_mof(self, ct: float) -> float:
        """
        Calculate the metering multiplier for a CT rating.

        Formula:
            MOF = PT ratio × (CT primary / CT secondary)

        With the default 120 PT ratio and 5A secondary this is 24 × CT.
        """
        return self.constants.PT_RATIO * (ct / self.constants.CT_SECONDARY)

    def calculate_max_tr(self, ct: float) -> int:
        """Estimated maximum transformer capacity, rounded half-up."""
        return round_half_up(ct * self.constants.MAX_TR_MULTIPLIER)

    def calculate_peak_power(self, reading: float, mof: float) -> float:
        """
        Scale the instrument reading by the MOF.

        Negative or non-finite readings are treated as 0.
        """
        if not math.isfinite(reading) or reading < 0:
            logger.debug(f"Reading {reading!r} out of domain, using 0")
            reading = 0.0
        return reading * mof

    @staticmethod
    def format_peak_power(value: float) -> str:
        """
        Format peak power with thousands separators and 2 decimals.

        Zero is shown as a bare "0" so an idle meter reads cleanly.
        """
        if value == 0:
            return "0"
        return f"{value:,.2f}"

    def calculate_row(self, reading: float, ct: int) -> PowerRow:
        """Build a single table row for one CT rating."""
        mof = self.calculate_mof(ct)
        peak_raw = self.calculate_peak_power(reading, mof)

        return PowerRow(
            ct=ct,
            mof=mof,
            max_tr=self.calculate_max_tr(ct),
            peak_power=self.format_peak_power(peak_raw),
            peak_power_raw=peak_raw,
        )

    def calculate_table(self, reading: float) -> List[PowerRow]:
        """
        Calculate every row of the CT table for a reading.

        Args:
            reading: Instrument reading (e.g. 0.450)

        Returns:
            One PowerRow per CT rating, in CT list order
        """
        return [self.calculate_row(reading, ct) for ct in self.constants.CT_VALUES]


def split_peak_power(row: PowerRow) -> Tuple[str, str]:
    """
    Split a large peak value into integer and fractional display parts.

    Values of 100 or more that carry a decimal point are split so the
    fraction can be drawn smaller, e.g. "1,234.56" -> ("1,234", ".56").
    Everything else comes back whole with an empty fraction.
    """
    text = row.peak_power
    if row.peak_power_raw >= 100 and "." in text:
        integer_part, fraction = text.split(".", 1)
        return integer_part, "." + fraction
    return text, ""


def calculate_power_table(reading: float) -> List[Dict[str, Any]]:
    """
    Convenience function for the full CT table as plain dictionaries.

    Useful for API endpoints and testing.

    Example:
        rows = calculate_power_table(1.234)
        for row in rows:
            print(row["ct"], row["peak_power"])
    """
    calc = PowerCalculator()
    return [row.to_dict() for row in calc.calculate_table(reading)]
