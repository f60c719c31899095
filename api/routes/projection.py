"""
Resource Projection Endpoints

Day-by-day projection of a resource balance towards a target.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from api.models import ProjectionRequest, ProjectionResponse
from core.projection import ProjectionCalculator, ResourceConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projection", tags=["Projection"])


@router.post(
    "",
    response_model=ProjectionResponse,
    summary="Project a resource balance",
    description="""
    Project the balance forward one day at a time.

    - **daily_with_bonus** = daily_income × (1 + bonus_percentage / 100)
    - **days_to_target**: 0 when already reached, null when unreachable
    - **completion_percent**: current / target, rounded
    - **series**: one point per day with the floored amount
    """
)
async def post_projection(request: ProjectionRequest):
    """Calculate a projection."""
    config = ResourceConfig(
        current_amount=request.current_amount,
        daily_income=request.daily_income,
        target_amount=request.target_amount,
        bonus_percentage=request.bonus_percentage,
    )

    try:
        calculator = ProjectionCalculator(config)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ProjectionResponse(**calculator.summary(days=request.days, start=request.start_date))
