"""
Meter Session

Composes the keypad, the CT table and the AISS lookup into the state a
field screen works with: one readout, one selected row, an optional AISS
inspection and an illumination flag.

The session is the only owner of mutable state. The CT table and AISS
settings are recomputed from the readout whenever they are read.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .aiss import AissLookup, AissSetting
from .digit_buffer import DigitBuffer, DigitBufferState, KeypadTiming, monotonic_ms
from .metering import PowerCalculator, PowerRow
from .press_timer import PressTimer
from .validators import MeterSnapshot, ValidationResult, sanitize_snapshot

logger = logging.getLogger(__name__)


@dataclass
class IlluminationStatus:
    """
    Work light state.

    Attributes:
        has_flash: True when a hardware torch is available; otherwise the
                   screen itself is used as the light
        is_on: Whether the light is on
    """
    has_flash: bool = False
    is_on: bool = False


class MeterSession:
    """
    A single technician's meter screen.

    Example:
        session = MeterSession()
        for d in "0450":
            session.press_digit(d)
        row = session.rows[1]
        print(row.ct, row.peak_power)  # 10 "108.00"
    """

    def __init__(
        self,
        snapshot: Optional[MeterSnapshot] = None,
        timing: Optional[KeypadTiming] = None,
        clock: Optional[Callable[[], float]] = None,
        calculator: Optional[PowerCalculator] = None,
        aiss_lookup: Optional[AissLookup] = None,
        illumination_sink: Optional[Callable[[bool], Any]] = None,
        has_flash: bool = False
    ):
        """
        Initialize the session.

        Args:
            snapshot: Restored state. If None, starts at 0.000 on row 2.
            timing: Keypad timing constants
            clock: Millisecond clock shared by every timer in the session
            calculator: CT table calculator
            aiss_lookup: AISS tier lookup
            illumination_sink: Called with the new on/off value whenever
                               the light changes
            has_flash: Whether a hardware torch backs the light
        """
        snapshot = snapshot or MeterSnapshot()
        self.timing = timing or KeypadTiming()
        self._clock = clock or monotonic_ms
        self.calculator = calculator or PowerCalculator()
        self.aiss_lookup = aiss_lookup or AissLookup()
        self.illumination_sink = illumination_sink
        self.illumination = IlluminationStatus(has_flash=has_flash)

        self.buffer = DigitBuffer(
            state=DigitBufferState(digits=snapshot.digits),
            timing=self.timing,
            clock=self._clock,
        )
        self._selected_index = 0
        self.select_row(snapshot.selected_index)
        self.inspection: Optional[AissSetting] = None

        self._back_timer = PressTimer(
            on_long=self.clear,
            on_short=self.back,
            threshold_ms=self.timing.LONG_PRESS_MS,
            clock=self._clock,
        )
        self._row_timer: Optional[PressTimer] = None

    @classmethod
    def restore(cls, data: Any, **kwargs) -> "MeterSession":
        """
        Build a session from raw stored data.

        Corrupt fields fall back to their defaults; see sanitize_snapshot.
        """
        snapshot, _ = sanitize_snapshot(data)
        return cls(snapshot=snapshot, **kwargs)

    @classmethod
    def restore_with_result(cls, data: Any, **kwargs) -> Tuple["MeterSession", ValidationResult]:
        """Like restore(), also returning the ValidationResult."""
        snapshot, result = sanitize_snapshot(data)
        return cls(snapshot=snapshot, **kwargs), result

    # =========================================
    # Views
    # =========================================

    @property
    def reading_text(self) -> str:
        return self.buffer.text

    @property
    def reading_value(self) -> float:
        return self.buffer.value

    @property
    def rows(self) -> List[PowerRow]:
        return self.calculator.calculate_table(self.reading_value)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def selected_row(self) -> PowerRow:
        return self.rows[self._selected_index]

    @property
    def row_count(self) -> int:
        return len(self.calculator.constants.CT_VALUES)

    def snapshot(self) -> MeterSnapshot:
        """Current state as a plain persistable value."""
        return MeterSnapshot(digits=self.buffer.digits, selected_index=self._selected_index)

    def to_dict(self) -> Dict[str, Any]:
        """Full view for JSON serialization."""
        return {
            "digits": list(self.buffer.digits),
            "reading": self.reading_text,
            "reading_value": self.reading_value,
            "active": self.buffer.active,
            "selected_index": self._selected_index,
            "rows": [row.to_dict() for row in self.rows],
            "inspection": self.inspection.to_dict() if self.inspection else None,
            "illumination": {
                "has_flash": self.illumination.has_flash,
                "is_on": self.illumination.is_on,
            },
        }

    # =========================================
    # Keypad
    # =========================================

    def press_digit(self, digit: str) -> str:
        self.buffer.press_digit(digit)
        return self.reading_text

    def back(self) -> str:
        self.buffer.back()
        return self.reading_text

    def clear(self) -> str:
        self.buffer.clear()
        return self.reading_text

    def press_back(self) -> None:
        """Back key down. Holding it past the long-press time clears."""
        self._back_timer.press()

    def poll(self) -> None:
        """Let held keys and rows reach their long-press threshold."""
        self.buffer.tick()
        self._back_timer.poll()
        if self._row_timer is not None:
            self._row_timer.poll()

    def release_back(self) -> Optional[str]:
        """Back key up. Returns "short", "long" or None."""
        return self._back_timer.release()

    # =========================================
    # CT Rows
    # =========================================

    def _check_row_index(self, index: int) -> None:
        # bool is an int subclass but never a row index
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < self.row_count:
            raise ValueError(f"Row index must be 0-{self.row_count - 1}, got {index!r}")

    def select_row(self, index: int) -> PowerRow:
        """
        Make a row the current selection.

        Raises:
            ValueError: If index is not a row of the CT table
        """
        self._check_row_index(index)
        self._selected_index = index
        return self.rows[index]

    def inspect_row(self, index: int) -> AissSetting:
        """Open the AISS setting for a row without changing the selection."""
        self._check_row_index(index)
        row = self.rows[index]

        self.inspection = self.aiss_lookup.lookup(row)
        logger.debug(f"AISS inspection for CT {row.ct}: {self.inspection}")
        return self.inspection

    def dismiss_inspection(self) -> None:
        self.inspection = None

    def press_row(self, index: int) -> None:
        """
        Row pressed. Holding opens the AISS setting, a tap selects it.

        Raises:
            ValueError: If index is not a row of the CT table
        """
        self._check_row_index(index)

        if self._row_timer is not None:
            self._row_timer.cancel()

        self._row_timer = PressTimer(
            on_long=lambda: self.inspect_row(index),
            on_short=lambda: self.select_row(index),
            threshold_ms=self.timing.LONG_PRESS_MS,
            clock=self._clock,
        )
        self._row_timer.press()

    def release_row(self) -> Optional[str]:
        """Row released. Returns "short", "long" or None."""
        if self._row_timer is None:
            return None

        outcome = self._row_timer.release()
        self._row_timer = None
        return outcome

    def cancel_row_press(self) -> None:
        """Pointer left the row; neither select nor inspect."""
        if self._row_timer is not None:
            self._row_timer.cancel()
            self._row_timer = None

    # =========================================
    # Illumination
    # =========================================

    def set_illumination(self, on: bool) -> bool:
        on = bool(on)
        if on != self.illumination.is_on:
            self.illumination.is_on = on
            if self.illumination_sink is not None:
                self.illumination_sink(on)
        return self.illumination.is_on

    def toggle_illumination(self) -> bool:
        return self.set_illumination(not self.illumination.is_on)
