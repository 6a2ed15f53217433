"""Work orders and the service records that close them."""

from typing import Optional

from .config import WORK_ORDER_PREFIX
from .status import WorkOrderStatus


def format_work_order_number(serial: int) -> str:
    """Human-readable order number, e.g. WO-000042."""
    return f"{WORK_ORDER_PREFIX}-{serial:06d}"


class WorkOrder:
    """A maintenance job for one (truck, maintenance type) pair."""

    def __init__(
        self,
        id: str,
        serial: int,
        truck_id: str,
        maintenance_type_id: str,
        due_at_hours: float,
        status: WorkOrderStatus = WorkOrderStatus.PENDING,
        auto_generated: bool = True,
        created_at: Optional[str] = None,
        completed_at: Optional[str] = None,
        assigned_to: Optional[str] = None,
        created_from_session_id: Optional[str] = None,
    ):
        self.id = id
        self.serial = serial
        self.truck_id = truck_id
        self.maintenance_type_id = maintenance_type_id
        self.due_at_hours = due_at_hours
        self.status = status
        self.auto_generated = auto_generated
        self.created_at = created_at
        self.completed_at = completed_at
        self.assigned_to = assigned_to
        self.created_from_session_id = created_from_session_id

    @property
    def number(self) -> str:
        return format_work_order_number(self.serial)

    @property
    def is_open(self) -> bool:
        return self.status.is_open


class ServiceRecord:
    """A record of maintenance performed; exactly one per completed order."""

    def __init__(
        self,
        id: str,
        truck_id: str,
        maintenance_type_id: str,
        work_order_id: str,
        hours_at_service: float,
        performed_at: str,
        sequence: int,
        odometer_at_service: Optional[int] = None,
        performed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        self.id = id
        self.truck_id = truck_id
        self.maintenance_type_id = maintenance_type_id
        self.work_order_id = work_order_id
        self.hours_at_service = hours_at_service
        self.performed_at = performed_at
        self.sequence = sequence
        self.odometer_at_service = odometer_at_service
        self.performed_by = performed_by
        self.notes = notes
