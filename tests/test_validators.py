"""
Tests for Snapshot-Guard Validation

These tests verify that stored meter snapshots are checked field by
field and that damaged fields fall back to their defaults.

Run with: pytest tests/test_validators.py -v
"""

import pytest
from core.validators import (
    DEFAULT_SELECTED_INDEX,
    MeterSnapshot,
    SnapshotGuard,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    sanitize_snapshot,
    validate_snapshot,
)


class TestValidationSeverity:
    """Test validation severity enum."""

    def test_severity_values(self):
        """Test all severity values exist."""
        assert ValidationSeverity.ERROR.value == "error"
        assert ValidationSeverity.WARNING.value == "warning"
        assert ValidationSeverity.INFO.value == "info"


class TestValidationResult:
    """Test ValidationResult dataclass."""

    def test_valid_result(self):
        """Test creating a valid result."""
        result = ValidationResult(is_valid=True, status="accepted", issues=[])

        assert result.is_valid
        assert result.status == "accepted"
        assert len(result.issues) == 0

    def test_to_dict(self):
        """Test conversion to dictionary."""
        result = ValidationResult(
            is_valid=False,
            status="rejected",
            issues=[
                ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name="test_rule",
                    message="Test message",
                    field_name="digits"
                ),
                ValidationIssue(
                    severity=ValidationSeverity.INFO,
                    rule_name="note",
                    message="Note"
                ),
            ]
        )

        d = result.to_dict()

        assert d["is_valid"] is False
        assert d["status"] == "rejected"
        assert d["error_count"] == 1
        assert d["warning_count"] == 0
        assert d["info_count"] == 1
        assert d["issues"][0]["severity"] == "error"

    def test_fields_with_errors(self):
        """Only error issues name a field to reset."""
        result = ValidationResult(
            is_valid=False,
            status="rejected",
            issues=[
                ValidationIssue(ValidationSeverity.ERROR, "a", "m", field_name="digits"),
                ValidationIssue(ValidationSeverity.WARNING, "b", "m", field_name="selected_index"),
            ]
        )
        assert result.fields_with_errors() == ["digits"]


class TestMeterSnapshot:
    """Test the persistable snapshot."""

    def test_defaults(self):
        snapshot = MeterSnapshot()
        assert snapshot.reading_text == "0.000"
        assert snapshot.selected_index == DEFAULT_SELECTED_INDEX == 2

    def test_to_dict(self):
        snapshot = MeterSnapshot(digits=("0", "4", "5", "0"), selected_index=1)
        assert snapshot.to_dict() == {"digits": ["0", "4", "5", "0"], "selected_index": 1}


class TestSnapshotGuard:
    """Test SnapshotGuard validation rules."""

    def setup_method(self):
        """Set up guard for each test."""
        self.guard = SnapshotGuard()

    def rule_names(self, result):
        return [i.rule_name for i in result.issues]

    def test_valid_snapshot_accepted(self):
        """A well-formed snapshot passes."""
        result = self.guard.validate({"digits": ["0", "4", "5", "0"], "selected_index": 1})
        assert result.is_valid
        assert result.status == "accepted"
        assert result.issues == []

    def test_empty_mapping_accepted_with_notes(self):
        """Missing fields are informational only."""
        result = self.guard.validate({})
        assert result.is_valid
        assert result.status == "accepted"
        assert self.rule_names(result) == ["digits_missing", "selected_index_missing"]
        assert all(i.severity == ValidationSeverity.INFO for i in result.issues)

    @pytest.mark.parametrize("data", [None, [], "0450", 42])
    def test_not_mapping_rejected(self, data):
        result = self.guard.validate(data)
        assert not result.is_valid
        assert self.rule_names(result) == ["snapshot_not_mapping"]

    def test_digits_as_string_warns(self):
        """A string readout from an older build is accepted with a warning."""
        result = self.guard.validate({"digits": "0450", "selected_index": 2})
        assert result.is_valid
        assert result.status == "accepted_with_warnings"
        assert self.rule_names(result) == ["digits_as_string"]

    def test_strict_mode_rejects_warnings(self):
        """Strict mode turns warnings into errors."""
        guard = SnapshotGuard(strict_mode=True)
        result = guard.validate({"digits": "0450", "selected_index": 2})
        assert not result.is_valid
        assert result.status == "rejected"
        assert result.issues[0].severity == ValidationSeverity.ERROR

    def test_digits_not_sequence(self):
        result = self.guard.validate({"digits": 450})
        assert not result.is_valid
        assert "digits_not_sequence" in self.rule_names(result)

    @pytest.mark.parametrize("digits", [["0", "4", "5"], ["0", "4", "5", "0", "1"], "045"])
    def test_digits_length(self, digits):
        result = self.guard.validate({"digits": digits})
        assert not result.is_valid
        assert "digits_length" in self.rule_names(result)

    @pytest.mark.parametrize("digits", [["0", "4", "x", "0"], ["0", 4, "5", "0"], ["0", "45", "5", "0"]])
    def test_digits_charset(self, digits):
        result = self.guard.validate({"digits": digits})
        assert not result.is_valid
        assert "digits_charset" in self.rule_names(result)

    @pytest.mark.parametrize("index", ["2", 2.0, True, [2]])
    def test_selected_index_type(self, index):
        """Only a real int is a row index."""
        result = self.guard.validate({"digits": ["0", "0", "0", "0"], "selected_index": index})
        assert not result.is_valid
        assert self.rule_names(result) == ["selected_index_type"]

    @pytest.mark.parametrize("index", [-1, 18, 99])
    def test_selected_index_range(self, index):
        result = self.guard.validate({"digits": ["0", "0", "0", "0"], "selected_index": index})
        assert not result.is_valid
        assert self.rule_names(result) == ["selected_index_range"]

    def test_row_count_configurable(self):
        guard = SnapshotGuard(row_count=3)
        assert not guard.validate({"selected_index": 3}).is_valid
        assert guard.validate({"selected_index": 2}).is_valid


class TestSanitizeSnapshot:
    """Test field-by-field fallback."""

    def test_valid_snapshot_kept(self):
        snapshot, result = sanitize_snapshot({"digits": ["1", "2", "3", "4"], "selected_index": 5})
        assert snapshot.digits == ("1", "2", "3", "4")
        assert snapshot.selected_index == 5
        assert result.status == "accepted"

    def test_string_digits_converted(self):
        snapshot, _ = sanitize_snapshot({"digits": "0450", "selected_index": 99})
        assert snapshot.reading_text == "0.450"
        assert snapshot.selected_index == 2

    def test_bad_digits_keep_selection(self):
        """A broken readout does not lose the selected row."""
        snapshot, result = sanitize_snapshot({"digits": ["x"], "selected_index": 7})
        assert snapshot.digits == ("0", "0", "0", "0")
        assert snapshot.selected_index == 7
        assert result.status == "rejected"

    def test_strict_string_digits_reset(self):
        snapshot, _ = sanitize_snapshot({"digits": "0450"}, strict=True)
        assert snapshot.reading_text == "0.000"

    @pytest.mark.parametrize("data", [None, "garbage", 12, {}])
    def test_never_raises(self, data):
        """Anything restores to something usable."""
        snapshot, _ = sanitize_snapshot(data)
        assert snapshot == MeterSnapshot()


class TestConvenienceFunction:
    """Test validate_snapshot convenience function."""

    def test_validate_snapshot(self):
        result = validate_snapshot({"digits": ["1", "2", "3", "4"], "selected_index": 0})
        assert result.is_valid

    def test_validate_snapshot_strict(self):
        result = validate_snapshot({"digits": "1234"}, strict=True)
        assert not result.is_valid
