"""
Tests for the Meter Session

These tests drive a full session through the keypad, the CT rows and
the illumination toggle on a hand-driven clock.

Run with: pytest tests/test_session.py -v
"""

import pytest
from core.session import MeterSession
from core.validators import MeterSnapshot


class TestSessionDefaults:
    """Test a fresh session."""

    def test_fresh_session(self, clock):
        session = MeterSession(clock=clock)
        assert session.reading_text == "0.000"
        assert session.reading_value == 0.0
        assert session.selected_index == 2
        assert session.selected_row.ct == 15
        assert session.row_count == 18
        assert session.inspection is None
        assert not session.buffer.active

    def test_fresh_rows_are_zero(self, clock):
        session = MeterSession(clock=clock)
        assert all(row.peak_power == "0" for row in session.rows)

    def test_to_dict(self, clock):
        session = MeterSession(clock=clock)
        d = session.to_dict()
        assert d["digits"] == ["0", "0", "0", "0"]
        assert d["reading"] == "0.000"
        assert d["active"] is False
        assert d["selected_index"] == 2
        assert len(d["rows"]) == 18
        assert d["inspection"] is None
        assert d["illumination"] == {"has_flash": False, "is_on": False}


class TestSessionKeypad:
    """Test keypad handling through the session."""

    def setup_method(self):
        """Set up a session on a hand-driven clock."""
        self.now = 0.0
        self.session = MeterSession(clock=lambda: self.now)

    def type_keys(self, keys, gap_ms=100):
        for d in keys:
            self.session.press_digit(d)
            self.now += gap_ms

    def test_rows_follow_reading(self):
        """The CT table is recomputed from the readout."""
        self.type_keys("0450")
        assert self.session.reading_text == "0.450"
        assert self.session.rows[1].peak_power == "108.00"

    def test_idle_reset(self):
        """A digit after a pause starts a fresh reading."""
        self.type_keys("45")
        self.now += 2000
        self.type_keys("7")
        assert self.session.reading_text == "0.007"

    def test_back_short_press(self):
        """A quick tap on back deletes the last digit."""
        self.type_keys("1234")
        self.session.press_back()
        self.now += 100
        assert self.session.release_back() == "short"
        assert self.session.reading_text == "0.123"

    def test_back_long_press_clears(self):
        """Holding back clears, and the release does not delete again."""
        self.type_keys("1234")
        self.session.press_back()
        self.now += 600
        self.session.poll()
        assert self.session.reading_text == "0.000"
        assert self.session.release_back() == "long"
        assert self.session.reading_text == "0.000"

    def test_release_back_without_press(self):
        assert self.session.release_back() is None

    def test_typing_after_clear_continues_entry(self):
        """Clear keeps the entry active, so typing scrolls in again."""
        self.type_keys("12")
        self.session.clear()
        self.type_keys("3")
        assert self.session.reading_text == "0.003"

    def test_poll_expires_entry(self):
        self.type_keys("1")
        self.now += 2000
        self.session.poll()
        assert not self.session.to_dict()["active"]


class TestSessionRows:
    """Test row selection and AISS inspection."""

    def setup_method(self):
        """Set up a session showing 0.450."""
        self.now = 0.0
        self.session = MeterSession(clock=lambda: self.now)
        for d in "0450":
            self.session.press_digit(d)

    def test_select_row(self):
        row = self.session.select_row(1)
        assert row.ct == 10
        assert self.session.selected_index == 1
        assert self.session.selected_row.peak_power == "108.00"

    @pytest.mark.parametrize("index", [-1, 18, True, "1", 1.0])
    def test_select_row_rejects_bad_index(self, index):
        with pytest.raises(ValueError):
            self.session.select_row(index)
        assert self.session.selected_index == 2

    def test_inspect_does_not_select(self):
        """Inspection opens the AISS card and leaves the selection alone."""
        setting = self.session.inspect_row(3)
        assert setting.ct == 20
        assert setting.max_tr == 714
        assert setting.phase_current == "30"
        assert self.session.inspection == setting
        assert self.session.selected_index == 2

    def test_dismiss_inspection(self):
        self.session.inspect_row(0)
        self.session.dismiss_inspection()
        assert self.session.inspection is None

    def test_inspect_rejects_bad_index(self):
        with pytest.raises(ValueError):
            self.session.inspect_row(18)

    def test_row_tap_selects(self):
        self.session.press_row(5)
        self.now += 100
        assert self.session.release_row() == "short"
        assert self.session.selected_index == 5
        assert self.session.inspection is None

    def test_row_hold_inspects(self):
        self.session.press_row(8)
        self.now += 600
        self.session.poll()
        assert self.session.inspection is not None
        assert self.session.inspection.ct == 100
        assert self.session.inspection.phase_current == "140"
        assert self.session.release_row() == "long"
        assert self.session.selected_index == 2

    def test_row_press_cancel(self):
        self.session.press_row(5)
        self.session.cancel_row_press()
        self.now += 1000
        self.session.poll()
        assert self.session.release_row() is None
        assert self.session.selected_index == 2
        assert self.session.inspection is None

    def test_second_row_press_replaces_first(self):
        self.session.press_row(4)
        self.session.press_row(6)
        self.now += 100
        self.session.release_row()
        assert self.session.selected_index == 6

    def test_press_row_rejects_bad_index(self):
        with pytest.raises(ValueError):
            self.session.press_row(99)


class TestSessionSnapshot:
    """Test persistence round trip and restore fallbacks."""

    def test_snapshot_has_no_active_flag(self, clock):
        session = MeterSession(clock=clock)
        session.press_digit("7")
        snapshot = session.snapshot()
        assert snapshot == MeterSnapshot(digits=("0", "0", "0", "7"), selected_index=2)
        assert "active" not in snapshot.to_dict()

    def test_restore_starts_idle(self, clock):
        """A restored session is idle, so the next digit starts fresh."""
        session = MeterSession.restore({"digits": ["1", "2", "3", "4"], "selected_index": 9}, clock=clock)
        assert session.reading_text == "1.234"
        assert session.selected_index == 9
        assert not session.buffer.active

        session.press_digit("5")
        assert session.reading_text == "0.005"

    def test_restore_repairs_damaged_fields(self, clock):
        session, result = MeterSession.restore_with_result(
            {"digits": ["1", "2", "3", "4"], "selected_index": 42},
            clock=clock
        )
        assert session.reading_text == "1.234"
        assert session.selected_index == 2
        assert result.status == "rejected"

    @pytest.mark.parametrize("data", [None, "oops", {"digits": None}])
    def test_restore_never_raises(self, data, clock):
        session = MeterSession.restore(data, clock=clock)
        assert session.reading_text == "0.000"
        assert session.selected_index == 2


class TestIllumination:
    """Test the work light toggle."""

    def setup_method(self):
        self.calls = []
        self.session = MeterSession(illumination_sink=self.calls.append)

    def test_toggle(self):
        assert self.session.toggle_illumination() is True
        assert self.session.toggle_illumination() is False
        assert self.calls == [True, False]

    def test_set_same_value_is_silent(self):
        """The sink only hears about changes."""
        self.session.set_illumination(False)
        self.session.set_illumination(True)
        self.session.set_illumination(True)
        assert self.calls == [True]

    def test_has_flash(self):
        session = MeterSession(has_flash=True)
        assert session.illumination.has_flash
        assert session.to_dict()["illumination"]["has_flash"] is True

    def test_no_sink(self):
        session = MeterSession()
        assert session.toggle_illumination() is True

    def test_sessions_have_their_own_light(self):
        """Turning one device's light on leaves another device dark."""
        other_calls = []
        other = MeterSession.restore({"digits": ["0", "4", "5", "0"]}, illumination_sink=other_calls.append)

        self.session.toggle_illumination()
        assert self.session.illumination.is_on
        assert not other.illumination.is_on
        assert other_calls == []

    def test_restored_session_starts_dark(self):
        session = MeterSession.restore({"digits": ["1", "2", "3", "4"], "selected_index": 3})
        assert not session.illumination.is_on
