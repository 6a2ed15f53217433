"""
Retroactive odometer corrections and the per-truck reconciliation pass.

A correction never patches derived values in place. It changes one reading,
then `reconcile_vehicle` re-walks the whole ledger of that truck.
"""

import logging
from typing import List, TYPE_CHECKING

from .actor import require_admin, require_reason
from .audit import AuditAction
from .calculations import (
    distance_delta,
    is_valid_reading,
    now_iso,
    parse_timestamp,
    round2,
    worked_hours_between,
)
from .checkpoint import refresh_checkpoints_from_history
from .errors import ErrorCode, FleetError
from .fleet_state import new_id
from .health_snapshot import HealthSnapshot
from .truck import Truck
from .work_orders import evaluate_vehicle
from .yard_session import YardSession

if TYPE_CHECKING:
    from .fleet_state import FleetState

logger = logging.getLogger(__name__)


def _require_valid_reading(odometer: int) -> None:
    if not is_valid_reading(odometer):
        raise FleetError(ErrorCode.INVALID_READING, f"Invalid odometer reading: {odometer!r}")


def _synthesized_timestamp(state: "FleetState", truck_id: str, now: str) -> str:
    """Moment for an admin-synthesized session: now, or the open entry if earlier."""
    open_session = state.get_open_session(truck_id)
    if open_session is None:
        return now
    entry_at = parse_timestamp(open_session.entry_at)
    if entry_at is not None and entry_at < parse_timestamp(now):
        return open_session.entry_at
    return now


def reconcile_vehicle(state: "FleetState", truck_id: str) -> List[HealthSnapshot]:
    """
    Recompute everything derived from a truck's yard ledger.

    1. Walk closed sessions chronologically, recomputing every distance delta
       and worked-hours figure from scratch
    2. Set the truck's reading (last session) and hours (sum of sessions)
    3. Re-derive the checkpoints of active types from service history
    4. Re-evaluate maintenance, cancelling orders that are no longer due
    """
    truck = state.require_truck(truck_id)
    now = now_iso()

    previous_reading = 0
    total_hours = 0.0
    sessions = state.get_sessions_for_truck(truck.id)
    for session in sessions:
        delta = distance_delta(previous_reading, session.odometer)
        hours = worked_hours_between(session.entry_at, session.exit_at)
        if session.distance_delta != delta or session.worked_hours != hours:
            session.distance_delta = delta
            session.worked_hours = hours
            session.updated_at = now
        previous_reading = session.odometer
        total_hours += hours

    truck.current_odometer = sessions[-1].odometer if sessions else 0
    truck.current_worked_hours = round2(total_hours)
    truck.updated_at = now
    logger.info(
        "Reconciled truck %s: %d sessions, odometer %d, %.2f h",
        truck.truck_number,
        len(sessions),
        truck.current_odometer,
        truck.current_worked_hours,
    )

    refresh_checkpoints_from_history(state, truck.id)
    return evaluate_vehicle(
        state, truck.id, truck.current_worked_hours, prune_not_due=True
    )


def correct_reading(
    state: "FleetState",
    session_id: str,
    new_odometer: int,
    actor_id: str,
    reason: str,
) -> YardSession:
    """
    Correct the odometer of a closed session (admin only).

    The new reading must sit between its chronological neighbours: not below
    the previous session's reading, not above the next one's.
    """
    require_admin(state, actor_id)
    reason = require_reason(reason)
    target = state.get_session(session_id)
    if target is None:
        raise FleetError(ErrorCode.NOT_FOUND, f"Yard session '{session_id}' not found")
    _require_valid_reading(new_odometer)

    ordered = state.get_sessions_for_truck(target.truck_id)
    index = next(i for i, s in enumerate(ordered) if s.id == target.id)
    previous = ordered[index - 1] if index > 0 else None
    following = ordered[index + 1] if index + 1 < len(ordered) else None

    if previous is not None and new_odometer < previous.odometer:
        raise FleetError(
            ErrorCode.OUT_OF_ORDER,
            f"Corrected reading cannot be below the previous one ({previous.odometer})",
        )
    if following is not None and new_odometer > following.odometer:
        raise FleetError(
            ErrorCode.OUT_OF_ORDER,
            f"Corrected reading cannot exceed the next one ({following.odometer})",
        )

    old_odometer = target.odometer
    target.odometer = new_odometer
    target.updated_at = now_iso()
    state.record_audit(
        AuditAction.YARD_SESSION_CORRECTION,
        target.id,
        actor_id,
        reason,
        {"odometer": old_odometer},
        {"odometer": new_odometer},
    )
    logger.info(
        "Corrected session %s odometer %d -> %d: %s",
        target.id,
        old_odometer,
        new_odometer,
        reason,
    )

    reconcile_vehicle(state, target.truck_id)
    return target


def adjust_current_reading(
    state: "FleetState",
    truck_id: str,
    new_odometer: int,
    actor_id: str,
    reason: str,
) -> Truck:
    """
    Set a truck's current odometer directly (admin only).

    A truck with no ledger gets a synthesized zero-hour session carrying the
    reading, stamped no later than an open entry so the ledger stays in
    exit order. Otherwise the latest session's reading is replaced, which must
    not drop below the session before it.
    """
    require_admin(state, actor_id)
    reason = require_reason(reason)
    truck = state.require_truck(truck_id)
    _require_valid_reading(new_odometer)

    ordered = state.get_sessions_for_truck(truck.id)
    latest = ordered[-1] if ordered else None
    previous = ordered[-2] if len(ordered) > 1 else None
    if previous is not None and new_odometer < previous.odometer:
        raise FleetError(
            ErrorCode.OUT_OF_ORDER,
            f"Reading cannot be below the previous one ({previous.odometer})",
        )

    now = now_iso()
    if latest is None:
        old_odometer = truck.current_odometer
        stamp = _synthesized_timestamp(state, truck.id, now)
        latest = YardSession(
            id=new_id(),
            truck_id=truck.id,
            entry_at=stamp,
            exit_at=stamp,
            odometer=new_odometer,
            distance_delta=new_odometer,
            worked_hours=0,
            recorded_by=actor_id,
            sequence=state.next_sequence(),
            notes=f"Admin adjustment: {reason}",
            created_at=now,
            updated_at=now,
        )
        state.sessions.append(latest)
    else:
        old_odometer = latest.odometer
        latest.odometer = new_odometer
        latest.updated_at = now

    state.record_audit(
        AuditAction.ODOMETER_ADJUSTMENT,
        truck.id,
        actor_id,
        reason,
        {"odometer": old_odometer},
        {"odometer": new_odometer},
    )
    logger.info(
        "Adjusted truck %s odometer %d -> %d: %s",
        truck.truck_number,
        old_odometer,
        new_odometer,
        reason,
    )

    reconcile_vehicle(state, truck.id)
    return truck
