"""
Meter Session Endpoints

This module stores and replays meter sessions per device. A device is
any handset or browser that wants its last readout and selected row back
on the next start.

Flow:
1. Load the stored snapshot (or defaults)
2. Validate it with the Snapshot-Guard
3. Apply the requested keys / selection to a fresh MeterSession
4. Store the new snapshot
5. Return the derived view (reading, CT table, selection)
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from api.database import get_db, DatabaseManager
from api.models import (
    ControlKey,
    KeyBatch,
    SelectRequest,
    SessionResponse,
    SnapshotInput,
    ValidationResponse,
)
from core.session import MeterSession
from core.validators import ValidationResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class ReplayClock:
    """Clock advanced by the elapsed time carried on each key event."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def build_response(
    device_id: str,
    session: MeterSession,
    stored: Optional[Dict[str, Any]],
    validation: Optional[ValidationResult] = None
) -> SessionResponse:
    """Combine a session view with its storage metadata."""
    view = session.to_dict()

    return SessionResponse(
        device_id=device_id,
        stored=stored is not None,
        updated_at=stored.get("updated_at") if stored else None,
        validation=ValidationResponse(**validation.to_dict()) if validation else None,
        **view,
    )


def load_session(db_manager: DatabaseManager, device_id: str, **kwargs):
    """
    Restore a device's session from storage.

    Returns:
        Tuple of (session, stored snapshot or None, validation result)
    """
    stored = db_manager.get_snapshot(device_id)
    session, result = MeterSession.restore_with_result(stored or {}, **kwargs)

    if stored and not result.is_valid:
        logger.warning(f"Stored snapshot for {device_id} was partly reset: {result.status}")

    return session, stored, result


def save_session(db_manager: DatabaseManager, device_id: str, session: MeterSession) -> Dict[str, Any]:
    snapshot = session.snapshot()
    return db_manager.save_snapshot(device_id, list(snapshot.digits), snapshot.selected_index)


# =========================================
# API Endpoints
# =========================================

@router.get(
    "",
    summary="List devices",
    description="Device IDs with a stored session"
)
async def list_devices(db: Session = Depends(get_db)):
    """List devices with a stored session."""
    with DatabaseManager(db) as db_manager:
        devices = db_manager.list_devices()
        return {"devices": devices, "count": len(devices)}


@router.get(
    "/{device_id}",
    response_model=SessionResponse,
    summary="Get a device session",
    description="""
    Restore the stored session for a device.

    When nothing is stored, the default session (0.000, row 2) is
    returned with `stored: false`. A corrupt stored snapshot is repaired
    field by field and the validation result is included.
    """
)
async def get_session(
    device_id: str = Path(..., min_length=1, max_length=64),
    db: Session = Depends(get_db)
):
    """Get the stored session for a device."""
    with DatabaseManager(db) as db_manager:
        session, stored, result = load_session(db_manager, device_id)
        return build_response(device_id, session, stored, result)


@router.put(
    "/{device_id}",
    response_model=SessionResponse,
    summary="Save a device session",
    description="""
    Validate and store a snapshot.

    Fields with errors are replaced by their defaults before storing;
    the validation block lists what was replaced.
    """
)
async def put_session(
    snapshot: SnapshotInput,
    device_id: str = Path(..., min_length=1, max_length=64),
    db: Session = Depends(get_db)
):
    """Store a snapshot for a device."""
    session, result = MeterSession.restore_with_result(snapshot.model_dump(exclude_none=True))

    with DatabaseManager(db) as db_manager:
        stored = save_session(db_manager, device_id, session)

    logger.info(f"Session saved for {device_id}: {session.reading_text} row {session.selected_index}")
    return build_response(device_id, session, stored, result)


@router.post(
    "/{device_id}/keys",
    response_model=SessionResponse,
    summary="Apply key presses",
    description="""
    Apply keypad events to the stored session, in order.

    Each event carries `elapsed_ms` since the previous event. A digit
    arriving 2000 ms or more after the previous digit starts a fresh
    entry. The stored session always starts idle.

    Keys: `0`-`9`, `back` (delete last digit), `clear` (long press on back).
    """
)
async def post_keys(
    batch: KeyBatch,
    device_id: str = Path(..., min_length=1, max_length=64),
    db: Session = Depends(get_db)
):
    """Apply a batch of key events."""
    clock = ReplayClock()

    with DatabaseManager(db) as db_manager:
        session, _, _ = load_session(db_manager, device_id, clock=clock)

        for event in batch.events:
            clock.advance(event.elapsed_ms)
            if event.key == ControlKey.BACK.value:
                session.back()
            elif event.key == ControlKey.CLEAR.value:
                session.clear()
            else:
                session.press_digit(event.key)

        stored = save_session(db_manager, device_id, session)

    return build_response(device_id, session, stored)


@router.post(
    "/{device_id}/select",
    response_model=SessionResponse,
    summary="Select a CT row"
)
async def post_select(
    request: SelectRequest,
    device_id: str = Path(..., min_length=1, max_length=64),
    db: Session = Depends(get_db)
):
    """Select a CT row and store it."""
    with DatabaseManager(db) as db_manager:
        session, _, _ = load_session(db_manager, device_id)

        try:
            session.select_row(request.index)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        stored = save_session(db_manager, device_id, session)

    return build_response(device_id, session, stored)


@router.get(
    "/{device_id}/inspect/{row_index}",
    response_model=SessionResponse,
    summary="Inspect a CT row",
    description="AISS setting for a row of the stored session. The selection is not changed."
)
async def get_inspection(
    row_index: int,
    device_id: str = Path(..., min_length=1, max_length=64),
    db: Session = Depends(get_db)
):
    """Open the AISS setting for a row."""
    with DatabaseManager(db) as db_manager:
        session, stored, _ = load_session(db_manager, device_id)

    try:
        session.inspect_row(row_index)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return build_response(device_id, session, stored)


@router.delete(
    "/{device_id}",
    summary="Forget a device session"
)
async def delete_session(
    device_id: str = Path(..., min_length=1, max_length=64),
    db: Session = Depends(get_db)
):
    """Delete the stored session for a device."""
    with DatabaseManager(db) as db_manager:
        deleted = db_manager.delete_snapshot(device_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No stored session for device: {device_id}"
        )

    logger.info(f"Session deleted for {device_id}")
    return {"success": True, "device_id": device_id}
