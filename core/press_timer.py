"""
Long-Press / Short-Press Disambiguation

A press starts a deferred long-press action. If the hold lasts long
enough the long action fires and the release does nothing more. If the
release comes first, the deferred action is cancelled and the short
action runs instead. Only one of the two ever runs for a given press.

Used for the keypad back key (short: delete a digit, long: clear) and
for CT table rows (short: select, long: show AISS settings).
"""

import logging
from typing import Callable, Optional

from .digit_buffer import KeypadTiming, monotonic_ms

logger = logging.getLogger(__name__)


class PressTimer:
    """
    Cancellable deferred action racing a release event.

    Time is read from an injected millisecond clock, so the "timer" is a
    deadline checked by poll() and release() rather than a thread.

    Example:
        timer = PressTimer(on_long=buf.clear, on_short=buf.back)
        timer.press()
        ...
        timer.release()   # back() if released early, clear() otherwise
    """

    def __init__(
        self,
        on_long: Callable[[], object],
        on_short: Callable[[], object],
        threshold_ms: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the timer.

        Args:
            on_long: Action run when the hold reaches the threshold
            on_short: Action run when released before the threshold
            threshold_ms: Hold time for a long press. Defaults to
                          KeypadTiming.LONG_PRESS_MS.
            clock: Millisecond clock. If None, uses time.monotonic.
        """
        self.on_long = on_long
        self.on_short = on_short
        self.threshold_ms = KeypadTiming().LONG_PRESS_MS if threshold_ms is None else threshold_ms
        self._clock = clock or monotonic_ms
        self._deadline: Optional[float] = None
        self._fired = False

    @property
    def pending(self) -> bool:
        """True while a press is held and the long action has not fired."""
        return self._deadline is not None and not self._fired

    @property
    def fired(self) -> bool:
        """True if the long action fired for the current press."""
        return self._fired

    def press(self) -> None:
        """Start a press. A press already in progress is restarted."""
        self._deadline = self._clock() + self.threshold_ms
        self._fired = False

    def poll(self) -> bool:
        """
        Fire the long action if the hold has reached the threshold.

        Returns:
            True if the long action fired on this call
        """
        if not self.pending or self._clock() < self._deadline:
            return False

        self._fired = True
        logger.debug("Long press threshold reached")
        self.on_long()
        return True

    def release(self) -> Optional[str]:
        """
        End the press.

        Returns:
            "long" if the long action handled this press, "short" if the
            short action ran, None if no press was in progress
        """
        if self._deadline is None:
            return None

        self.poll()
        fired = self._fired
        self._deadline = None
        self._fired = False

        if fired:
            return "long"

        self.on_short()
        return "short"

    def cancel(self) -> None:
        """Drop the current press without running either action."""
        self._deadline = None
        self._fired = False
