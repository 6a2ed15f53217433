"""
Admin edits of trucks and maintenance types.

Editing a maintenance type re-evaluates every truck against the new
definition. Deactivating a type takes it out of evaluation: its pending
auto-generated orders are cancelled, while its service records, checkpoints
and completed orders stay as history.
"""

import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

from .actor import require_admin, require_reason
from .audit import AuditAction
from .calculations import is_finite_number, now_iso
from .checkpoint import refresh_checkpoint_from_history
from .errors import ErrorCode, FleetError
from .maintenance_type import MaintenanceType
from .status import TruckStatus
from .truck import Truck
from .work_orders import cancel_pending_auto_orders, evaluate_pair

if TYPE_CHECKING:
    from .fleet_state import FleetState

logger = logging.getLogger(__name__)

DEFAULT_EDIT_REASON = "Administrative edit"


def _audit_changes(
    state: "FleetState",
    entity_type: str,
    entity_id: str,
    actor_id: str,
    reason: str,
    old: Dict[str, Any],
    new: Dict[str, Any],
) -> None:
    changed = [key for key in new if old.get(key) != new[key]]
    if not changed:
        return
    state.record_audit(
        entity_type,
        entity_id,
        actor_id,
        reason,
        {key: old[key] for key in changed},
        {key: new[key] for key in changed},
    )


def _edit_reason(reason: Optional[str]) -> str:
    return require_reason(reason) if reason else DEFAULT_EDIT_REASON


def update_truck(
    state: "FleetState",
    truck_id: str,
    actor_id: str,
    truck_number: Optional[str] = None,
    brand: Optional[str] = None,
    model: Optional[str] = None,
    year: Optional[int] = None,
    status: Optional[TruckStatus] = None,
    reason: Optional[str] = None,
) -> Truck:
    """Edit a truck's identification and status (admin only). None means unchanged."""
    require_admin(state, actor_id)
    reason = _edit_reason(reason)
    truck = state.require_truck(truck_id)

    number = truck.truck_number
    if truck_number is not None:
        number = truck_number.strip().upper()
        if not number:
            raise FleetError(ErrorCode.INVALID_INPUT, "Truck number is required")
        other = state.get_truck_by_number(number)
        if other is not None and other.id != truck.id:
            raise FleetError(
                ErrorCode.DUPLICATE, f"A truck numbered '{number}' already exists"
            )
    if year is not None and (isinstance(year, bool) or not isinstance(year, int) or year <= 0):
        raise FleetError(ErrorCode.INVALID_INPUT, f"Invalid model year: {year!r}")

    old = {
        "truckNumber": truck.truck_number,
        "brand": truck.brand,
        "model": truck.model,
        "year": truck.year,
        "status": truck.status.value,
    }
    truck.truck_number = number
    if brand is not None:
        truck.brand = brand.strip()
    if model is not None:
        truck.model = model.strip()
    if year is not None:
        truck.year = year
    if status is not None:
        truck.status = status
    truck.updated_at = now_iso()

    _audit_changes(
        state,
        AuditAction.TRUCK_UPDATE,
        truck.id,
        actor_id,
        reason,
        old,
        {
            "truckNumber": truck.truck_number,
            "brand": truck.brand,
            "model": truck.model,
            "year": truck.year,
            "status": truck.status.value,
        },
    )
    logger.info("Updated truck %s", truck.name)
    return truck


def update_maintenance_type(
    state: "FleetState",
    maintenance_type_id: str,
    actor_id: str,
    name: Optional[str] = None,
    interval_hours: Optional[float] = None,
    warning_before_hours: Optional[float] = None,
    is_active: Optional[bool] = None,
    reason: Optional[str] = None,
) -> MaintenanceType:
    """
    Edit a maintenance type (admin only). None means unchanged.

    Every truck is re-evaluated against the edited type, so a shorter
    interval can raise work orders and a longer one can retire pending
    auto-generated orders. A reactivated type first re-derives its
    checkpoints from service history.
    """
    require_admin(state, actor_id)
    reason = _edit_reason(reason)
    maintenance_type = state.get_maintenance_type(maintenance_type_id)
    if maintenance_type is None:
        raise FleetError(
            ErrorCode.NOT_FOUND, f"Maintenance type '{maintenance_type_id}' not found"
        )

    new_name = maintenance_type.name
    if name is not None:
        new_name = name.strip()
        if not new_name:
            raise FleetError(ErrorCode.INVALID_INPUT, "Maintenance type name is required")
    interval = maintenance_type.interval_hours
    if interval_hours is not None:
        if not is_finite_number(interval_hours) or interval_hours <= 0:
            raise FleetError(
                ErrorCode.INVALID_INTERVAL, "Interval must be a positive number of hours"
            )
        interval = interval_hours
    warning = maintenance_type.warning_before_hours
    if warning_before_hours is not None:
        if not is_finite_number(warning_before_hours) or warning_before_hours < 0:
            raise FleetError(
                ErrorCode.INVALID_INTERVAL, "Warning threshold cannot be negative"
            )
        warning = warning_before_hours

    old = {
        "name": maintenance_type.name,
        "intervalHours": maintenance_type.interval_hours,
        "warningBeforeHours": maintenance_type.warning_before_hours,
        "isActive": maintenance_type.is_active,
    }
    was_active = maintenance_type.is_active
    maintenance_type.name = new_name
    maintenance_type.interval_hours = interval
    maintenance_type.warning_before_hours = warning
    if is_active is not None:
        maintenance_type.is_active = bool(is_active)

    _audit_changes(
        state,
        AuditAction.MAINTENANCE_TYPE_UPDATE,
        maintenance_type.id,
        actor_id,
        reason,
        old,
        {
            "name": maintenance_type.name,
            "intervalHours": maintenance_type.interval_hours,
            "warningBeforeHours": maintenance_type.warning_before_hours,
            "isActive": maintenance_type.is_active,
        },
    )

    for truck in state.trucks:
        if not maintenance_type.is_active:
            cancel_pending_auto_orders(state, truck.id, maintenance_type.id)
            continue
        if not was_active:
            refresh_checkpoint_from_history(state, truck.id, maintenance_type.id)
        evaluate_pair(
            state,
            truck.id,
            maintenance_type,
            truck.current_worked_hours,
            prune_not_due=True,
        )
    logger.info(
        "Updated maintenance type %s: every %.2f h, warning %.2f h, %s",
        maintenance_type.name,
        maintenance_type.interval_hours,
        maintenance_type.warning_before_hours,
        "active" if maintenance_type.is_active else "inactive",
    )
    return maintenance_type


def deactivate_maintenance_type(
    state: "FleetState",
    maintenance_type_id: str,
    actor_id: str,
    reason: Optional[str] = None,
) -> MaintenanceType:
    """Take a maintenance type out of evaluation, keeping its history."""
    return update_maintenance_type(
        state, maintenance_type_id, actor_id, is_active=False, reason=reason
    )
