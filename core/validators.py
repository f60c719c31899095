"""
Snapshot-Guard Validation Layer

This module validates meter session snapshots restored from outside
storage (browser storage, the API database, a JSON file) before they are
turned back into a live session.

Philosophy:
- Hard failures: A field that cannot be a readout or a row index -> Error
- Soft warnings: Recoverable shape differences -> Accept with warnings
- Missing fields are not failures; defaults are used

Restoring never raises. A field with an error is replaced by its
default while the other field is kept, so the last good part of the
snapshot survives.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple
import logging

from .digit_buffer import BUFFER_WIDTH, DIGITS, EMPTY_DIGITS, format_reading
from .metering import CT_VALUES

logger = logging.getLogger(__name__)

DEFAULT_SELECTED_INDEX = 2


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"        # Unusable - field falls back to default
    WARNING = "warning"    # Recoverable - accept with warning
    INFO = "info"          # Informational note


@dataclass
class ValidationIssue:
    """
    A single validation issue found in a snapshot.

    Attributes:
        severity: How serious is this issue
        rule_name: Identifier for the rule that was violated
        message: Human-readable description
        field_name: Which snapshot field has the issue
        actual_value: The problematic value, as text
        expected: What the value should look like
        recommendation: How to fix the issue
    """
    severity: ValidationSeverity
    rule_name: str
    message: str
    field_name: Optional[str] = None
    actual_value: Optional[str] = None
    expected: Optional[str] = None
    recommendation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "rule_name": self.rule_name,
            "message": self.message,
            "field_name": self.field_name,
            "actual_value": self.actual_value,
            "expected": self.expected,
            "recommendation": self.recommendation,
        }


@dataclass
class ValidationResult:
    """
    Result of validating a snapshot.

    Attributes:
        is_valid: True if the snapshot can be used as-is (possibly with warnings)
        status: "accepted", "accepted_with_warnings", or "rejected"
        issues: List of all validation issues found
    """
    is_valid: bool
    status: str
    issues: List[ValidationIssue] = field(default_factory=list)

    def fields_with_errors(self) -> List[str]:
        """Names of the fields that must fall back to defaults."""
        return [
            i.field_name for i in self.issues
            if i.severity == ValidationSeverity.ERROR and i.field_name
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        errors = [i for i in self.issues if i.severity == ValidationSeverity.ERROR]
        warnings = [i for i in self.issues if i.severity == ValidationSeverity.WARNING]
        infos = [i for i in self.issues if i.severity == ValidationSeverity.INFO]

        return {
            "is_valid": self.is_valid,
            "status": self.status,
            "error_count": len(errors),
            "warning_count": len(warnings),
            "info_count": len(infos),
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class MeterSnapshot:
    """
    Persistable meter state: the readout digits and the selected row.

    The entry-in-progress flag is not stored; a restored
    session always starts idle.
    """
    digits: Tuple[str, str, str, str] = EMPTY_DIGITS
    selected_index: int = DEFAULT_SELECTED_INDEX

    @property
    def reading_text(self) -> str:
        return format_reading(self.digits)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "digits": list(self.digits),
            "selected_index": self.selected_index,
        }


class SnapshotGuard:
    """
    Validation guard for persisted meter snapshots.

    Catches the usual ways stored state goes bad:
    - Storage written by an older build (digits saved as one string)
    - Truncated or hand-edited values
    - A row index from a longer CT table

    Example:
        guard = SnapshotGuard()
        result = guard.validate({"digits": ["0", "4", "5", "0"], "selected_index": 1})
        print(result.status)  # "accepted"

        result = guard.validate({"digits": ["0", "4", "5"], "selected_index": 1})
        print(result.status)  # "rejected"
    """

    def __init__(self, strict_mode: bool = False, row_count: int = len(CT_VALUES)):
        """
        Initialize the snapshot guard.

        Args:
            strict_mode: If True, treat warnings as errors (reject more)
            row_count: Number of rows in the CT table
        """
        self.strict_mode = strict_mode
        self.row_count = row_count

    def validate(self, data: Dict[str, Any]) -> ValidationResult:
        """
        Validate a snapshot mapping.

        Args:
            data: Mapping with optional "digits" and "selected_index"

        Returns:
            ValidationResult with status and any issues found
        """
        issues: List[ValidationIssue] = []

        if not isinstance(data, dict):
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="snapshot_not_mapping",
                message="Snapshot must be a mapping",
                actual_value=type(data).__name__,
                expected="{'digits': [...], 'selected_index': n}",
                recommendation="Discard the stored value"
            ))
            return ValidationResult(is_valid=False, status="rejected", issues=issues)

        issues.extend(self._validate_digits(data))
        issues.extend(self._validate_selected_index(data))

        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        warnings = [i for i in issues if i.severity == ValidationSeverity.WARNING]

        if errors:
            return ValidationResult(is_valid=False, status="rejected", issues=issues)
        elif warnings:
            if self.strict_mode:
                for w in warnings:
                    w.severity = ValidationSeverity.ERROR
                return ValidationResult(is_valid=False, status="rejected", issues=issues)
            return ValidationResult(is_valid=True, status="accepted_with_warnings", issues=issues)
        else:
            return ValidationResult(is_valid=True, status="accepted", issues=issues)

    def _validate_digits(self, data: Dict[str, Any]) -> List[ValidationIssue]:
        """The readout must be four single characters '0'..'9'."""
        issues = []

        if "digits" not in data or data["digits"] is None:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.INFO,
                rule_name="digits_missing",
                message="No stored readout, starting at 0.000",
                field_name="digits"
            ))
            return issues

        digits = data["digits"]

        if isinstance(digits, str):
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                rule_name="digits_as_string",
                message="Readout stored as a string instead of a list",
                field_name="digits",
                actual_value=digits,
                expected="list of 4 digit characters",
                recommendation="Re-save the snapshot to store the list form"
            ))
        elif not isinstance(digits, (list, tuple)):
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="digits_not_sequence",
                message="Readout must be a sequence of digits",
                field_name="digits",
                actual_value=repr(digits),
                expected="list of 4 digit characters",
                recommendation="Discard the stored readout"
            ))
            return issues

        if len(digits) != BUFFER_WIDTH:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="digits_length",
                message=f"Readout must have exactly {BUFFER_WIDTH} digits",
                field_name="digits",
                actual_value=repr(digits),
                expected=f"{BUFFER_WIDTH} digits",
                recommendation="Discard the stored readout"
            ))
            return issues

        bad = [d for d in digits if not isinstance(d, str) or len(d) != 1 or d not in DIGITS]
        if bad:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="digits_charset",
                message="Readout may only contain the characters 0-9",
                field_name="digits",
                actual_value=repr(digits),
                expected="'0'..'9'",
                recommendation="Discard the stored readout"
            ))

        return issues

    def _validate_selected_index(self, data: Dict[str, Any]) -> List[ValidationIssue]:
        """The selection must point at a row of the CT table."""
        issues = []

        if "selected_index" not in data or data["selected_index"] is None:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.INFO,
                rule_name="selected_index_missing",
                message=f"No stored selection, using row {DEFAULT_SELECTED_INDEX}",
                field_name="selected_index"
            ))
            return issues

        index = data["selected_index"]

        # bool is an int subclass but never a row index
        if isinstance(index, bool) or not isinstance(index, int):
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="selected_index_type",
                message="Selection must be an integer row index",
                field_name="selected_index",
                actual_value=repr(index),
                expected="integer",
                recommendation="Discard the stored selection"
            ))
        elif not 0 <= index < self.row_count:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="selected_index_range",
                message="Selection is outside the CT table",
                field_name="selected_index",
                actual_value=str(index),
                expected=f"0 - {self.row_count - 1}",
                recommendation="Discard the stored selection"
            ))

        return issues


def sanitize_snapshot(
    data: Any,
    strict: bool = False
) -> Tuple[MeterSnapshot, ValidationResult]:
    """
    Build a usable snapshot from raw stored data.

    Fields with errors fall back to their defaults; valid fields are kept.

    Example:
        snapshot, result = sanitize_snapshot({"digits": "0450", "selected_index": 99})
        print(snapshot.reading_text)    # "0.450"
        print(snapshot.selected_index)  # 2
    """
    guard = SnapshotGuard(strict_mode=strict)
    result = guard.validate(data)

    if not isinstance(data, dict):
        logger.warning("Stored snapshot is not a mapping, using defaults")
        return MeterSnapshot(), result

    bad_fields = set(result.fields_with_errors())

    digits = EMPTY_DIGITS
    if data.get("digits") is not None and "digits" not in bad_fields:
        digits = tuple(data["digits"])

    selected_index = DEFAULT_SELECTED_INDEX
    if data.get("selected_index") is not None and "selected_index" not in bad_fields:
        selected_index = data["selected_index"]

    if bad_fields:
        logger.warning(f"Stored snapshot fields reset to defaults: {sorted(bad_fields)}")

    return MeterSnapshot(digits=digits, selected_index=selected_index), result


def validate_snapshot(data: Dict[str, Any], strict: bool = False) -> ValidationResult:
    """
    Convenience function to validate a snapshot.

    Example:
        result = validate_snapshot({"digits": ["1", "2", "3", "4"]})
        if result.is_valid:
            print("Snapshot accepted")
    """
    guard = SnapshotGuard(strict_mode=strict)
    return guard.validate(data)
