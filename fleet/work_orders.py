"""
Work order lifecycle: evaluate, start, complete and revert.

Per (truck, maintenance type) pair an order moves
NONE -> PENDING -> IN_PROGRESS -> COMPLETED, or PENDING -> CANCELLED for
auto-generated orders whose trigger went away. At most one PENDING or
IN_PROGRESS order exists per pair.
"""

import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

from .actor import require_admin, require_reason
from .audit import AuditAction
from .calculations import classify_health, is_finite_number, now_iso, round2
from .checkpoint import ensure_checkpoint, refresh_checkpoint_from_history
from .errors import ErrorCode, FleetError
from .fleet_state import new_id
from .health_snapshot import HealthSnapshot
from .status import Health, WorkOrderStatus
from .work_order import ServiceRecord, WorkOrder

if TYPE_CHECKING:
    from .fleet_state import FleetState
    from .maintenance_type import MaintenanceType

logger = logging.getLogger(__name__)


def _create_work_order(
    state: "FleetState",
    truck_id: str,
    maintenance_type: "MaintenanceType",
    due_at_hours: float,
    created_from_session_id: Optional[str],
) -> WorkOrder:
    order = WorkOrder(
        id=new_id(),
        serial=state.next_work_order_serial(),
        truck_id=truck_id,
        maintenance_type_id=maintenance_type.id,
        due_at_hours=due_at_hours,
        status=WorkOrderStatus.PENDING,
        auto_generated=True,
        created_at=now_iso(),
        created_from_session_id=created_from_session_id,
    )
    state.work_orders.append(order)
    logger.info(
        "Created work order %s for truck %s (%s due at %.2f h)",
        order.number,
        truck_id,
        maintenance_type.name,
        due_at_hours,
    )
    return order


def cancel_pending_auto_orders(
    state: "FleetState", truck_id: str, maintenance_type_id: str
) -> List[WorkOrder]:
    """Cancel the auto-generated PENDING orders of one (truck, type) pair."""
    cancelled = []
    for order in state.work_orders:
        if (
            order.truck_id == truck_id
            and order.maintenance_type_id == maintenance_type_id
            and order.auto_generated
            and order.status == WorkOrderStatus.PENDING
        ):
            order.status = WorkOrderStatus.CANCELLED
            order.completed_at = now_iso()
            cancelled.append(order)
            logger.info("Cancelled pending work order %s", order.number)
    return cancelled


def evaluate_pair(
    state: "FleetState",
    truck_id: str,
    maintenance_type: "MaintenanceType",
    current_hours: float,
    prune_not_due: bool = False,
    created_from_session_id: Optional[str] = None,
) -> HealthSnapshot:
    """
    Evaluate one maintenance type on one truck and act on the result.

    - DUE or OVERDUE: ensure an open work order exists (never a second one)
    - below DUE with prune_not_due: cancel pending auto-generated orders
    """
    checkpoint = ensure_checkpoint(state, truck_id, maintenance_type.id)
    hours_since = round2(current_hours - checkpoint.last_service_hours)
    health = classify_health(
        hours_since, maintenance_type.interval_hours, maintenance_type.warning_before_hours
    )

    open_order = state.get_open_work_order(truck_id, maintenance_type.id)
    created = False
    if health in (Health.DUE, Health.OVERDUE):
        if open_order is None:
            open_order = _create_work_order(
                state,
                truck_id,
                maintenance_type,
                round2(maintenance_type.due_at(checkpoint.last_service_hours)),
                created_from_session_id,
            )
            created = True
    elif prune_not_due:
        cancel_pending_auto_orders(state, truck_id, maintenance_type.id)
        open_order = state.get_open_work_order(truck_id, maintenance_type.id)

    return HealthSnapshot(
        maintenance_type=maintenance_type,
        health=health,
        last_service_hours=checkpoint.last_service_hours,
        hours_since_service=hours_since,
        remaining_hours=round2(maintenance_type.interval_hours - hours_since),
        overdue_hours=round2(max(0, hours_since - maintenance_type.interval_hours)),
        open_work_order_id=open_order.id if open_order else None,
        open_work_order_number=open_order.number if open_order else None,
        work_order_created=created,
    )


def evaluate_vehicle(
    state: "FleetState",
    truck_id: str,
    current_hours: float,
    prune_not_due: bool = False,
    created_from_session_id: Optional[str] = None,
) -> List[HealthSnapshot]:
    """Evaluate every active maintenance type for a truck."""
    state.require_truck(truck_id)
    return [
        evaluate_pair(
            state,
            truck_id,
            maintenance_type,
            current_hours,
            prune_not_due,
            created_from_session_id,
        )
        for maintenance_type in state.active_maintenance_types()
    ]


def start_work_order(state: "FleetState", work_order_id: str, actor_id: str) -> WorkOrder:
    """Move an order to IN_PROGRESS, assigning the actor if nobody is assigned."""
    order = state.require_work_order(work_order_id)
    if not order.is_open:
        raise FleetError(
            ErrorCode.ALREADY_CLOSED, f"Work order {order.number} is already closed"
        )

    order.status = WorkOrderStatus.IN_PROGRESS
    order.assigned_to = order.assigned_to or actor_id
    logger.info("Work order %s started by %s", order.number, order.assigned_to)
    return order


def complete_work_order(
    state: "FleetState",
    work_order_id: str,
    service_hours: float,
    actor_id: str,
    notes: Optional[str] = None,
) -> Tuple[WorkOrder, List[HealthSnapshot]]:
    """
    Close an order, record the service, and advance the checkpoint.

    The service hours must lie between the previous service and the truck's
    current worked hours. Afterwards the truck is re-evaluated with pruning so
    stale orders are retired.
    """
    order = state.require_work_order(work_order_id)
    if not order.is_open:
        raise FleetError(
            ErrorCode.ALREADY_CLOSED, f"Work order {order.number} is already closed"
        )
    truck = state.require_truck(order.truck_id)
    maintenance_type = state.get_maintenance_type(order.maintenance_type_id)
    if maintenance_type is None:
        raise FleetError(
            ErrorCode.NOT_FOUND,
            f"Maintenance type '{order.maintenance_type_id}' not found",
        )

    checkpoint = state.checkpoints.get((order.truck_id, order.maintenance_type_id))
    last_hours = checkpoint.last_service_hours if checkpoint else 0
    if not is_finite_number(service_hours) or service_hours < 0:
        raise FleetError(
            ErrorCode.OUT_OF_RANGE,
            f"Service hours must be a finite non-negative number, got {service_hours!r}",
        )
    if service_hours < last_hours:
        raise FleetError(
            ErrorCode.OUT_OF_RANGE,
            f"Service hours cannot be before the last service ({last_hours:.2f} h)",
        )
    if service_hours > truck.current_worked_hours:
        raise FleetError(
            ErrorCode.OUT_OF_RANGE,
            f"Service hours cannot exceed the truck's current hours "
            f"({truck.current_worked_hours:.2f} h)",
        )

    now = now_iso()
    service_hours = round2(service_hours)
    order.status = WorkOrderStatus.COMPLETED
    order.completed_at = now
    order.assigned_to = order.assigned_to or actor_id

    if state.get_service_record(order.id) is None:
        state.service_records.append(
            ServiceRecord(
                id=new_id(),
                truck_id=order.truck_id,
                maintenance_type_id=order.maintenance_type_id,
                work_order_id=order.id,
                hours_at_service=service_hours,
                performed_at=now,
                sequence=state.next_sequence(),
                odometer_at_service=truck.current_odometer,
                performed_by=actor_id,
                notes=notes,
            )
        )

    checkpoint = ensure_checkpoint(state, order.truck_id, order.maintenance_type_id)
    checkpoint.last_service_hours = service_hours
    checkpoint.last_service_at = now
    checkpoint.updated_at = now
    logger.info(
        "Work order %s completed at %.2f h (%s)",
        order.number,
        service_hours,
        maintenance_type.name,
    )

    snapshots = evaluate_vehicle(
        state, order.truck_id, truck.current_worked_hours, prune_not_due=True
    )
    return order, snapshots


def revert_work_order(
    state: "FleetState", work_order_id: str, actor_id: str, reason: str
) -> WorkOrder:
    """
    Undo a completion (admin only).

    The service record is deleted and the checkpoint is re-derived from the
    remaining service history rather than patched. An auto-generated pending
    order raised for the same pair since the completion is cancelled, since
    the reopened order takes its place.
    """
    require_admin(state, actor_id)
    reason = require_reason(reason)
    order = state.require_work_order(work_order_id)
    if order.status != WorkOrderStatus.COMPLETED:
        raise FleetError(
            ErrorCode.NOT_COMPLETED,
            f"Only completed work orders can be reverted ({order.number} is "
            f"{order.status.value})",
        )
    truck = state.require_truck(order.truck_id)

    superseded = state.get_open_work_order(order.truck_id, order.maintenance_type_id)
    if superseded is not None and not (
        superseded.auto_generated and superseded.status == WorkOrderStatus.PENDING
    ):
        raise FleetError(
            ErrorCode.ALREADY_OPEN,
            f"Work order {superseded.number} is already open for this maintenance",
        )

    if superseded is not None:
        superseded.status = WorkOrderStatus.CANCELLED
        superseded.completed_at = now_iso()
        logger.info(
            "Cancelled work order %s: superseded by reverted %s",
            superseded.number,
            order.number,
        )

    records_before = len(state.service_records)
    state.service_records = [
        r for r in state.service_records if r.work_order_id != order.id
    ]
    order.status = WorkOrderStatus.PENDING
    order.completed_at = None

    refresh_checkpoint_from_history(state, order.truck_id, order.maintenance_type_id)
    state.record_audit(
        AuditAction.WORK_ORDER_REVERT,
        order.id,
        actor_id,
        reason,
        {"status": WorkOrderStatus.COMPLETED.value, "serviceRecords": records_before},
        {"status": order.status.value, "serviceRecords": len(state.service_records)},
    )
    logger.info("Work order %s reverted to PENDING: %s", order.number, reason)

    evaluate_vehicle(state, order.truck_id, truck.current_worked_hours, prune_not_due=True)
    return order
