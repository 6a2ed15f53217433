"""Per (truck, maintenance type) record of the last point of service."""

from typing import Iterable, Optional, TYPE_CHECKING

from .calculations import now_iso, timestamp_sort_key

if TYPE_CHECKING:
    from .fleet_state import FleetState
    from .work_order import ServiceRecord


class MaintenanceCheckpoint:
    """Worked hours (and time) at which a maintenance type was last serviced."""

    def __init__(
        self,
        truck_id: str,
        maintenance_type_id: str,
        last_service_hours: float = 0,
        last_service_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ):
        self.truck_id = truck_id
        self.maintenance_type_id = maintenance_type_id
        self.last_service_hours = last_service_hours or 0
        self.last_service_at = last_service_at
        self.updated_at = updated_at

    @property
    def key(self):
        return (self.truck_id, self.maintenance_type_id)


def ensure_checkpoint(
    state: "FleetState", truck_id: str, maintenance_type_id: str
) -> MaintenanceCheckpoint:
    """Get the checkpoint for a pair, creating it at 0 hours on first use."""
    key = (truck_id, maintenance_type_id)
    checkpoint = state.checkpoints.get(key)
    if checkpoint is None:
        checkpoint = MaintenanceCheckpoint(
            truck_id, maintenance_type_id, 0, updated_at=now_iso()
        )
        state.checkpoints[key] = checkpoint
    return checkpoint


def latest_service_record(
    records: Iterable["ServiceRecord"],
) -> Optional["ServiceRecord"]:
    """Most recent service record by (performed_at, sequence)."""
    records = list(records)
    if not records:
        return None
    return max(
        records, key=lambda r: (timestamp_sort_key(r.performed_at), r.sequence)
    )


def refresh_checkpoint_from_history(
    state: "FleetState", truck_id: str, maintenance_type_id: str
) -> MaintenanceCheckpoint:
    """
    Re-derive a checkpoint from the remaining service records.

    The most recent record wins; with no records the pair falls back to 0.
    """
    checkpoint = ensure_checkpoint(state, truck_id, maintenance_type_id)
    latest = latest_service_record(
        state.get_service_records(truck_id, maintenance_type_id)
    )
    checkpoint.last_service_hours = latest.hours_at_service if latest else 0
    checkpoint.last_service_at = latest.performed_at if latest else None
    checkpoint.updated_at = now_iso()
    return checkpoint


def refresh_checkpoints_from_history(state: "FleetState", truck_id: str) -> None:
    """
    Re-derive every active maintenance type's checkpoint for a truck.

    Only active types are re-derived. Checkpoints of deactivated types are
    left as they are, and `update_maintenance_type` re-derives them when the
    type is reactivated.
    """
    for maintenance_type in state.active_maintenance_types():
        refresh_checkpoint_from_history(state, truck_id, maintenance_type.id)
