"""
Digit Buffer - Keypad Entry State Machine

The meter readout is a fixed four-digit window shown as D.DDD. Digits
typed in quick succession scroll in from the right; a digit typed after
the keypad has been idle starts a fresh entry instead.

States:
    idle   -> the next digit replaces the readout with 000d
    active -> the next digit shifts the readout left and appends

Transitions are plain functions over an immutable DigitBufferState.
DigitBuffer wraps them with a clock so the idle timeout can be checked
without any event loop.
"""

import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DIGITS = "0123456789"
BUFFER_WIDTH = 4
EMPTY_DIGITS: Tuple[str, str, str, str] = ("0", "0", "0", "0")


@dataclass
class KeypadTiming:
    """Keypad timing constants in milliseconds."""

    IDLE_TIMEOUT_MS: float = 2000    # digit entry goes stale after this
    LONG_PRESS_MS: float = 600       # hold time that counts as a long press


@dataclass(frozen=True)
class DigitBufferState:
    """
    Readout digits plus the entry-in-progress flag.

    Attributes:
        digits: Exactly four characters '0'..'9'
        active: True while digits are being typed in quick succession
    """
    digits: Tuple[str, str, str, str] = EMPTY_DIGITS
    active: bool = False

    def __post_init__(self):
        if len(self.digits) != BUFFER_WIDTH or any(
            not isinstance(d, str) or len(d) != 1 or d not in DIGITS for d in self.digits
        ):
            raise ValueError(f"Readout must be {BUFFER_WIDTH} digits, got {self.digits!r}")
        object.__setattr__(self, "digits", tuple(self.digits))

    @property
    def text(self) -> str:
        """Readout formatted as D.DDD."""
        return format_reading(self.digits)

    @property
    def value(self) -> float:
        """Readout as a number."""
        return parse_reading(self.text)


# =========================================
# Pure Transitions
# =========================================

def press_digit(state: DigitBufferState, digit: str) -> DigitBufferState:
    """
    Apply a digit key press.

    Raises:
        ValueError: If digit is not a single character '0'..'9'
    """
    if not isinstance(digit, str) or len(digit) != 1 or digit not in DIGITS:
        raise ValueError(f"Not a keypad digit: {digit!r}")

    if state.active:
        digits = state.digits[1:] + (digit,)
    else:
        digits = ("0", "0", "0", digit)

    return DigitBufferState(digits=digits, active=True)


def back(state: DigitBufferState) -> DigitBufferState:
    """Drop the most recent digit and pad with a leading zero."""
    return replace(state, digits=("0",) + state.digits[:-1])


def clear(state: DigitBufferState) -> DigitBufferState:
    """Reset the readout to 0.000."""
    return replace(state, digits=EMPTY_DIGITS)


def expire(state: DigitBufferState) -> DigitBufferState:
    """Mark the entry as stale after the idle timeout."""
    if not state.active:
        return state
    return replace(state, active=False)


def format_reading(digits: Sequence[str]) -> str:
    """Render ['1','2','3','4'] as '1.234'."""
    return f"{digits[0]}.{''.join(digits[1:])}"


def parse_reading(text: str) -> float:
    """
    Parse a formatted readout.

    Malformed or non-finite text reads as 0.0.
    """
    try:
        value = float(text)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable reading {text!r}, using 0")
        return 0.0

    if not math.isfinite(value):
        return 0.0
    return value


def monotonic_ms() -> float:
    """Default clock for keypad timers."""
    return time.monotonic() * 1000


# =========================================
# Stateful Buffer
# =========================================

class DigitBuffer:
    """
    Digit buffer with an idle timeout.

    The idle timer is a deadline. It restarts on every digit press and
    is checked whenever the buffer is touched, which is equivalent to a
    countdown that a later press cancels.

    Example:
        buf = DigitBuffer()
        for d in "1234":
            buf.press_digit(d)
        print(buf.text)  # "1.234"
    """

    def __init__(
        self,
        state: Optional[DigitBufferState] = None,
        timing: Optional[KeypadTiming] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the buffer.

        Args:
            state: Starting state. If None, starts idle at 0.000.
            timing: Keypad timing constants. If None, uses defaults.
            clock: Millisecond clock. If None, uses time.monotonic.
        """
        self.timing = timing or KeypadTiming()
        self._clock = clock or monotonic_ms
        self._state = state or DigitBufferState()
        self._deadline: Optional[float] = None

        if self._state.active:
            self._deadline = self._clock() + self.timing.IDLE_TIMEOUT_MS

    @property
    def state(self) -> DigitBufferState:
        self.tick()
        return self._state

    @property
    def digits(self) -> Tuple[str, str, str, str]:
        return self._state.digits

    @property
    def active(self) -> bool:
        return self.state.active

    @property
    def text(self) -> str:
        return self._state.text

    @property
    def value(self) -> float:
        return self._state.value

    def tick(self) -> bool:
        """
        Expire the entry if the idle deadline has passed.

        Returns:
            True if the buffer went idle on this call
        """
        if self._deadline is not None and self._clock() >= self._deadline:
            self._deadline = None
            self._state = expire(self._state)
            logger.debug("Digit entry idle, next digit starts a fresh reading")
            return True
        return False

    def press_digit(self, digit: str) -> DigitBufferState:
        self.tick()
        self._state = press_digit(self._state, digit)
        self._deadline = self._clock() + self.timing.IDLE_TIMEOUT_MS
        return self._state

    def back(self) -> DigitBufferState:
        self.tick()
        self._state = back(self._state)
        return self._state

    def clear(self) -> DigitBufferState:
        self.tick()
        self._state = clear(self._state)
        return self._state
