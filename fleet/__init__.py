"""
Truck fleet yard and maintenance engine.

This package turns yard entry/exit records into truck utilization and keeps
preventive maintenance work orders in step with it:
- Health / WorkOrderStatus: Status enums
- Truck, MaintenanceType, Actor: Fleet reference data
- OpenYardSession / YardSession: The yard ledger
- MaintenanceCheckpoint: Last point of service per truck and type
- WorkOrder / ServiceRecord: Maintenance jobs and their completions
- TruckDocument: Dated paperwork with expiration tracking
- FleetState: The snapshot every operation works on
"""

from .status import Health, WorkOrderStatus, TruckStatus, Role, DocumentStatus
from .errors import ErrorCode, FleetError
from .actor import Actor
from .truck import Truck
from .maintenance_type import MaintenanceType
from .checkpoint import MaintenanceCheckpoint
from .yard_session import OpenYardSession, YardSession
from .work_order import WorkOrder, ServiceRecord
from .audit import AuditEntry
from .truck_document import TruckDocument
from .health_snapshot import HealthSnapshot
from .fleet_state import FleetState
from .calculations import worked_hours_between, distance_delta, classify_health
from .work_orders import (
    evaluate_vehicle,
    start_work_order,
    complete_work_order,
    revert_work_order,
)
from .yard import open_yard_session, close_yard_session
from .corrections import correct_reading, adjust_current_reading, reconcile_vehicle
from .summary import truck_health, fleet_summary
from .admin import update_truck, update_maintenance_type, deactivate_maintenance_type
from .documents import add_truck_document, classify_document_expiration, truck_documents
from .reports import report_range, report_summary, report_detail
from .loader import load_fleet, save_fleet, create_fleet, fleet_transaction

__all__ = [
    "Health",
    "WorkOrderStatus",
    "TruckStatus",
    "Role",
    "DocumentStatus",
    "ErrorCode",
    "FleetError",
    "Actor",
    "Truck",
    "MaintenanceType",
    "MaintenanceCheckpoint",
    "OpenYardSession",
    "YardSession",
    "WorkOrder",
    "ServiceRecord",
    "AuditEntry",
    "TruckDocument",
    "HealthSnapshot",
    "FleetState",
    "worked_hours_between",
    "distance_delta",
    "classify_health",
    "evaluate_vehicle",
    "start_work_order",
    "complete_work_order",
    "revert_work_order",
    "open_yard_session",
    "close_yard_session",
    "correct_reading",
    "adjust_current_reading",
    "reconcile_vehicle",
    "truck_health",
    "fleet_summary",
    "update_truck",
    "update_maintenance_type",
    "deactivate_maintenance_type",
    "add_truck_document",
    "classify_document_expiration",
    "truck_documents",
    "report_range",
    "report_summary",
    "report_detail",
    "load_fleet",
    "save_fleet",
    "create_fleet",
    "fleet_transaction",
]
