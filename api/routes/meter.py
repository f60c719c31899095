"""
Meter Calculation Endpoints

Stateless endpoints over the core calculations: the CT table for a
reading and the AISS setting for a capacity or a table row.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from api.models import (
    AissSettingModel,
    AissTierModel,
    MeteringConstantsResponse,
    PowerRowModel,
    PowerTableResponse,
)
from core.aiss import AissLookup
from core.digit_buffer import DigitBufferState
from core.metering import PowerCalculator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meter", tags=["Meter"])

# Initialize core components
power_calculator = PowerCalculator()
aiss_lookup = AissLookup()


def resolve_reading(digits: Optional[str], reading: Optional[float]) -> DigitBufferState:
    """
    Turn query parameters into a readout.

    Args:
        digits: Four digit characters, e.g. "0450"
        reading: Numeric reading, used when digits is absent

    Raises:
        HTTPException: 400 if neither parameter forms a valid readout
    """
    if digits is not None:
        try:
            return DigitBufferState(digits=tuple(digits))
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if reading is None:
        return DigitBufferState()

    # 9.9996 rounds to "10.000", which no longer fits the readout
    text = f"{reading:.3f}"
    try:
        return DigitBufferState(digits=tuple(text.replace(".", "")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Reading {reading} does not fit the D.DDD readout (must round below 10)"
        )


@router.get(
    "/ct-table",
    response_model=MeteringConstantsResponse,
    summary="Metering constants",
    description="PT ratio, CT secondary, Max TR multiplier and the standard CT ratings."
)
async def get_constants():
    """Get the constants behind the CT table."""
    c = power_calculator.constants
    return MeteringConstantsResponse(
        pt_ratio=c.PT_RATIO,
        ct_secondary=c.CT_SECONDARY,
        max_tr_multiplier=c.MAX_TR_MULTIPLIER,
        ct_values=list(c.CT_VALUES),
    )


@router.get(
    "/table",
    response_model=PowerTableResponse,
    summary="CT table for a reading",
    description="""
    Calculate MOF, Max TR and peak power for every standard CT rating.

    Pass the readout either as `digits` (four characters, e.g. `0450`)
    or as a numeric `reading` (e.g. `0.45`). Rows come back in CT order.
    """
)
async def get_power_table(
    digits: Optional[str] = Query(default=None, min_length=4, max_length=4),
    reading: Optional[float] = Query(default=None, ge=0),
):
    """Get the CT table for a reading."""
    state = resolve_reading(digits, reading)
    rows = power_calculator.calculate_table(state.value)

    return PowerTableResponse(
        reading=state.text,
        reading_value=state.value,
        rows=[PowerRowModel(**row.to_dict()) for row in rows],
    )


@router.get(
    "/aiss-tiers",
    response_model=List[AissTierModel],
    summary="AISS setting table"
)
async def get_aiss_tiers():
    """Get the AISS tier table, ascending by capacity limit."""
    return [AissTierModel(**tier.to_dict()) for tier in aiss_lookup.tiers]


@router.get(
    "/aiss",
    response_model=AissSettingModel,
    summary="AISS setting for a capacity",
    description="First tier whose limit is at least `max_tr`; the last tier above every limit."
)
async def get_aiss_for_capacity(
    max_tr: int = Query(..., ge=0, description="Transformer capacity (kVA)")
):
    """Get the AISS setting for a transformer capacity."""
    tier = aiss_lookup.find_tier(max_tr)

    return AissSettingModel(
        ct=None,
        max_tr=max_tr,
        phase_current=tier.phase_current,
        ground_current=tier.ground_current,
        time_delay=tier.time_delay,
    )


@router.get(
    "/aiss/{row_index}",
    response_model=AissSettingModel,
    summary="AISS setting for a CT row"
)
async def get_aiss_for_row(
    row_index: int,
    digits: Optional[str] = Query(default=None, min_length=4, max_length=4),
):
    """Get the AISS setting for a row of the CT table."""
    rows = power_calculator.calculate_table(resolve_reading(digits, None).value)

    if not 0 <= row_index < len(rows):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No CT row {row_index} (table has {len(rows)} rows)"
        )

    return AissSettingModel(**aiss_lookup.lookup(rows[row_index]).to_dict())
