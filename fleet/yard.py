"""
Yard entry/exit sessions.

A truck is in the yard while it has an OpenYardSession. Closing the session
turns it into a YardSession in the ledger, accumulates its worked hours on the
truck, and re-evaluates maintenance.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple, TYPE_CHECKING

from .calculations import (
    distance_delta,
    is_valid_reading,
    now_iso,
    parse_timestamp,
    round2,
    worked_hours_between,
)
from .errors import ErrorCode, FleetError
from .fleet_state import new_id
from .work_order import WorkOrder
from .work_orders import evaluate_vehicle
from .yard_session import OpenYardSession, YardSession

if TYPE_CHECKING:
    from .fleet_state import FleetState

logger = logging.getLogger(__name__)


def _merge_notes(*notes: Optional[str]) -> Optional[str]:
    merged = " | ".join(n.strip() for n in notes if n and n.strip())
    return merged or None


def _require_after_last_exit(
    state: "FleetState", truck_id: str, moment: datetime, label: str
) -> None:
    """Yard movements cannot be backdated before the latest closed exit."""
    history = state.get_sessions_for_truck(truck_id)
    if not history:
        return
    last_exit = parse_timestamp(history[-1].exit_at)
    if last_exit is not None and moment < last_exit:
        raise FleetError(
            ErrorCode.INVALID_TIME_RANGE,
            f"{label} time cannot be before the last recorded exit ({history[-1].exit_at})",
        )


def open_yard_session(
    state: "FleetState",
    truck_id: str,
    entry_time: str,
    odometer: int,
    recorded_by: str,
    notes: Optional[str] = None,
) -> OpenYardSession:
    """Record a truck entering the yard with its odometer reading."""
    truck = state.require_truck(truck_id)
    entry_at = parse_timestamp(entry_time)
    if entry_at is None:
        raise FleetError(ErrorCode.INVALID_TIME, f"Invalid entry time: {entry_time!r}")
    if not is_valid_reading(odometer):
        raise FleetError(
            ErrorCode.INVALID_READING, f"Odometer must be a whole number >= 0, got {odometer!r}"
        )
    if state.get_open_session(truck.id) is not None:
        raise FleetError(
            ErrorCode.ALREADY_OPEN,
            f"Truck {truck.truck_number} already has an open entry; record its exit first",
        )
    if odometer < truck.current_odometer:
        raise FleetError(
            ErrorCode.NON_MONOTONIC,
            f"Odometer {odometer} is below the last reading "
            f"({truck.current_odometer}) and cannot decrease",
        )
    _require_after_last_exit(state, truck.id, entry_at, "Entry")

    session = OpenYardSession(
        id=new_id(),
        truck_id=truck.id,
        entry_at=entry_time,
        odometer=odometer,
        recorded_by=recorded_by,
        notes=notes,
        created_at=now_iso(),
    )
    state.open_sessions.append(session)
    logger.info(
        "Truck %s entered the yard at %s (odometer %d)",
        truck.truck_number,
        entry_time,
        odometer,
    )
    return session


def close_yard_session(
    state: "FleetState",
    truck_id: str,
    exit_time: str,
    notes: Optional[str] = None,
) -> Tuple[YardSession, List[WorkOrder]]:
    """
    Record a truck leaving the yard.

    The distance delta is measured against the most recent closed session,
    not the entry reading. Returns the closed session and the work orders this
    exit generated.
    """
    truck = state.require_truck(truck_id)
    open_session = state.get_open_session(truck.id)
    if open_session is None:
        raise FleetError(
            ErrorCode.NOT_OPEN,
            f"Truck {truck.truck_number} has no open entry; record its entry first",
        )

    exit_at = parse_timestamp(exit_time)
    if exit_at is None:
        raise FleetError(ErrorCode.INVALID_TIME, f"Invalid exit time: {exit_time!r}")
    entry_at = parse_timestamp(open_session.entry_at)
    if entry_at is None or exit_at <= entry_at:
        raise FleetError(
            ErrorCode.INVALID_TIME_RANGE,
            "Exit time must be later than the open entry time",
        )

    _require_after_last_exit(state, truck.id, exit_at, "Exit")
    history = state.get_sessions_for_truck(truck.id)
    previous_reading = history[-1].odometer if history else 0
    if open_session.odometer < previous_reading:
        raise FleetError(
            ErrorCode.NON_MONOTONIC,
            f"Odometer {open_session.odometer} is below the last confirmed "
            f"reading ({previous_reading}) and cannot decrease",
        )

    now = now_iso()
    worked_hours = worked_hours_between(open_session.entry_at, exit_time)
    session = YardSession(
        id=new_id(),
        truck_id=truck.id,
        entry_at=open_session.entry_at,
        exit_at=exit_time,
        odometer=open_session.odometer,
        distance_delta=distance_delta(previous_reading, open_session.odometer),
        worked_hours=worked_hours,
        recorded_by=open_session.recorded_by,
        sequence=state.next_sequence(),
        notes=_merge_notes(open_session.notes, notes),
        created_at=now,
        updated_at=now,
    )
    state.sessions.append(session)
    state.open_sessions.remove(open_session)

    # Reading is replaced, hours accumulate
    truck.current_odometer = open_session.odometer
    truck.current_worked_hours = round2(truck.current_worked_hours + worked_hours)
    truck.updated_at = now
    logger.info(
        "Truck %s left the yard: %.2f h worked, %d distance, %.2f h total",
        truck.truck_number,
        worked_hours,
        session.distance_delta,
        truck.current_worked_hours,
    )

    snapshots = evaluate_vehicle(
        state,
        truck.id,
        truck.current_worked_hours,
        created_from_session_id=session.id,
    )
    generated = [
        state.get_work_order(s.open_work_order_id)
        for s in snapshots
        if s.work_order_created
    ]
    return session, generated
