"""Append-only audit trail for privileged mutations."""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class AuditEntry:
    """One privileged change: what it was, what it became, who and why."""

    id: str
    entity_type: str
    entity_id: str
    actor_id: str
    reason: str
    timestamp: str
    old_value: Dict[str, Any] = field(default_factory=dict)
    new_value: Dict[str, Any] = field(default_factory=dict)


class AuditAction:
    """Entity types recorded in the audit trail."""

    YARD_SESSION_CORRECTION = "YardSession"
    ODOMETER_ADJUSTMENT = "TruckOdometerAdjust"
    WORK_ORDER_REVERT = "WorkOrderRevert"
    DOCUMENT_UPLOAD = "TruckDocument"
    TRUCK_UPDATE = "TruckUpdate"
    MAINTENANCE_TYPE_UPDATE = "MaintenanceTypeUpdate"
