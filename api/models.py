"""
Pydantic Models for API Request/Response Validation

This module defines all the data models used by the API for:
- Request body validation
- Response serialization
- Documentation generation (OpenAPI/Swagger)

All models use Pydantic v2 syntax for validation and serialization.
"""

from datetime import date, datetime
from typing import Optional, List, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, field_validator


# =========================================
# Enums
# =========================================

class ValidationStatus(str, Enum):
    """Snapshot validation status."""
    ACCEPTED = "accepted"
    ACCEPTED_WITH_WARNINGS = "accepted_with_warnings"
    REJECTED = "rejected"


class ControlKey(str, Enum):
    """Non-digit keypad keys."""
    BACK = "back"
    CLEAR = "clear"


# =========================================
# Meter Table Models
# =========================================

class PowerRowModel(BaseModel):
    """One CT table row."""
    ct: int = Field(..., description="CT primary rating (A)")
    mof: float = Field(..., description="Metering multiplier")
    max_tr: int = Field(..., description="Estimated max transformer capacity (kVA)")
    peak_power: str = Field(..., description="Formatted peak power")
    peak_power_raw: float = Field(..., description="Unformatted peak power")


class PowerTableResponse(BaseModel):
    """CT table for a reading."""
    reading: str = Field(..., description="Reading formatted as D.DDD")
    reading_value: float = Field(..., description="Reading as a number")
    rows: List[PowerRowModel] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "reading": "0.450",
                "reading_value": 0.45,
                "rows": [
                    {
                        "ct": 10,
                        "mof": 240.0,
                        "max_tr": 357,
                        "peak_power": "108.00",
                        "peak_power_raw": 108.0
                    }
                ]
            }
        }


class MeteringConstantsResponse(BaseModel):
    """Constants behind the CT table."""
    pt_ratio: float
    ct_secondary: float
    max_tr_multiplier: float
    ct_values: List[int]


class AissTierModel(BaseModel):
    """One AISS tier."""
    limit: int = Field(..., description="Upper transformer capacity bound (kVA)")
    phase_current: str = Field(..., description="Phase pickup current (A)")
    ground_current: str = Field(..., description="Ground pickup current (A)")
    time_delay: str = Field(..., description="Time delay range (s)")


class AissSettingModel(BaseModel):
    """AISS setting resolved for a CT row."""
    ct: Optional[int] = Field(None, description="CT rating of the inspected row")
    max_tr: int = Field(..., description="Max TR used for the lookup")
    phase_current: str
    ground_current: str
    time_delay: str


# =========================================
# Session Models
# =========================================

class SnapshotInput(BaseModel):
    """
    Stored meter state.

    Field types are left open: the Snapshot-Guard decides what is usable so
    that a partly corrupt snapshot still restores its good fields.
    """
    digits: Optional[Any] = Field(
        default=None,
        description="Four digit characters, e.g. [\"0\", \"4\", \"5\", \"0\"]"
    )
    selected_index: Optional[Any] = Field(
        default=None,
        description="Selected CT row index"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "digits": ["0", "4", "5", "0"],
                "selected_index": 2
            }
        }


class KeyEvent(BaseModel):
    """A single keypad event."""
    key: str = Field(..., description="'0'-'9', 'back' or 'clear'")
    elapsed_ms: float = Field(
        default=0,
        description="Milliseconds since the previous event",
        ge=0
    )

    @field_validator("key")
    @classmethod
    def key_must_be_known(cls, v: str) -> str:
        if len(v) == 1 and v in "0123456789":
            return v
        if v in (ControlKey.BACK.value, ControlKey.CLEAR.value):
            return v
        raise ValueError("key must be a digit 0-9, 'back' or 'clear'")


class KeyBatch(BaseModel):
    """Batch of keypad events applied in order."""
    events: List[KeyEvent] = Field(
        ...,
        description="Key events",
        min_length=1,
        max_length=200
    )


class SelectRequest(BaseModel):
    """Row selection."""
    index: int = Field(..., description="CT row index", ge=0)


class ValidationIssueModel(BaseModel):
    """A single validation issue."""
    severity: str = Field(..., description="error, warning, or info")
    rule_name: str = Field(..., description="Name of the violated rule")
    message: str = Field(..., description="Human-readable description")
    field_name: Optional[str] = Field(None, description="Affected field")
    actual_value: Optional[str] = Field(None, description="The problematic value")
    expected: Optional[str] = Field(None, description="Expected value")
    recommendation: Optional[str] = Field(None, description="How to fix")


class ValidationResponse(BaseModel):
    """Response from snapshot validation."""
    is_valid: bool = Field(..., description="Whether the snapshot was accepted")
    status: ValidationStatus = Field(..., description="Validation status")
    error_count: int = Field(default=0)
    warning_count: int = Field(default=0)
    info_count: int = Field(default=0)
    issues: List[ValidationIssueModel] = Field(default_factory=list)


class IlluminationModel(BaseModel):
    has_flash: bool = False
    is_on: bool = False


class SessionResponse(BaseModel):
    """Stored session with its derived view."""
    device_id: str
    stored: bool = Field(..., description="False when defaults are shown")
    updated_at: Optional[datetime] = None
    digits: List[str]
    reading: str
    reading_value: float
    active: bool = False
    selected_index: int
    rows: List[PowerRowModel] = Field(default_factory=list)
    inspection: Optional[AissSettingModel] = None
    illumination: IlluminationModel = Field(default_factory=IlluminationModel)
    validation: Optional[ValidationResponse] = None


# =========================================
# Projection Models
# =========================================

class ProjectionRequest(BaseModel):
    """Projection inputs."""
    current_amount: float = Field(default=12000, ge=0)
    daily_income: float = Field(default=450, ge=0)
    target_amount: float = Field(default=24000, ge=0)
    bonus_percentage: float = Field(default=10, ge=0, le=100)
    days: int = Field(default=60, ge=1, le=3650)
    start_date: Optional[date] = Field(
        default=None,
        description="First day of the series (defaults to today)"
    )


class ProjectionPointModel(BaseModel):
    date: str = Field(..., description="ISO date")
    amount: int
    is_peak: bool


class ProjectionResponse(BaseModel):
    config: Dict[str, float]
    daily_with_bonus: float
    days_to_target: Optional[int] = Field(
        None,
        description="None when the target cannot be reached"
    )
    completion_percent: int
    series: List[ProjectionPointModel] = Field(default_factory=list)


# =========================================
# System Models
# =========================================

class SystemHealth(BaseModel):
    """System health check response."""
    status: str = Field(..., description="ok or degraded")
    version: str
    timestamp: datetime
    database: str
    components: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error envelope."""
    error: bool = True
    message: str
    detail: Optional[str] = None
    status_code: int
    timestamp: datetime
