"""YAML loading and saving utilities for fleet snapshots."""

import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from .actor import Actor
from .audit import AuditEntry
from .checkpoint import MaintenanceCheckpoint
from .fleet_state import FleetState
from .maintenance_type import MaintenanceType
from .status import Role, TruckStatus, WorkOrderStatus
from .truck import Truck
from .truck_document import TruckDocument
from .work_order import ServiceRecord, WorkOrder
from .yard_session import OpenYardSession, YardSession

logger = logging.getLogger(__name__)


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    """Omit None values for cleaner YAML."""
    return {k: v for k, v in d.items() if v is not None}


def _timestamp(value: Any) -> Optional[str]:
    """Unquoted YAML timestamps load as datetimes; keep everything as ISO text."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


# =============================================================================
# Parsing (YAML dict -> objects)
# =============================================================================


def _parse_actor(dct: Dict[str, Any]) -> Actor:
    return Actor(dct["id"], dct["name"], Role(dct.get("role", Role.OPERATOR.value)))


def _parse_truck(dct: Dict[str, Any]) -> Truck:
    return Truck(
        dct["id"],
        dct["truckNumber"],
        dct.get("brand", ""),
        dct.get("model", ""),
        dct.get("year"),
        dct.get("currentOdometer"),
        dct.get("currentWorkedHours"),
        TruckStatus(dct.get("status", TruckStatus.ACTIVE.value)),
        dct.get("createdAt"),
        dct.get("updatedAt"),
    )


def _parse_maintenance_type(dct: Dict[str, Any]) -> MaintenanceType:
    return MaintenanceType(
        dct["id"],
        dct["name"],
        dct["intervalHours"],
        dct.get("warningBeforeHours"),
        dct.get("isActive", True),
    )


def _parse_checkpoint(dct: Dict[str, Any]) -> MaintenanceCheckpoint:
    return MaintenanceCheckpoint(
        dct["truckId"],
        dct["maintenanceTypeId"],
        dct.get("lastServiceHours"),
        _timestamp(dct.get("lastServiceAt")),
        dct.get("updatedAt"),
    )


def _parse_open_session(dct: Dict[str, Any]) -> OpenYardSession:
    return OpenYardSession(
        dct["id"],
        dct["truckId"],
        _timestamp(dct["entryAt"]),
        dct["odometer"],
        dct.get("recordedBy"),
        dct.get("notes"),
        dct.get("createdAt"),
    )


def _parse_session(dct: Dict[str, Any]) -> YardSession:
    return YardSession(
        dct["id"],
        dct["truckId"],
        _timestamp(dct["entryAt"]),
        _timestamp(dct["exitAt"]),
        dct["odometer"],
        dct.get("distanceDelta", 0),
        dct.get("workedHours", 0),
        dct.get("recordedBy"),
        dct.get("sequence", 0),
        dct.get("notes"),
        dct.get("createdAt"),
        dct.get("updatedAt"),
    )


def _parse_work_order(dct: Dict[str, Any]) -> WorkOrder:
    return WorkOrder(
        dct["id"],
        dct["serial"],
        dct["truckId"],
        dct["maintenanceTypeId"],
        dct["dueAtHours"],
        WorkOrderStatus(dct.get("status", WorkOrderStatus.PENDING.value)),
        dct.get("autoGenerated", True),
        dct.get("createdAt"),
        dct.get("completedAt"),
        dct.get("assignedTo"),
        dct.get("createdFromSessionId"),
    )


def _parse_service_record(dct: Dict[str, Any]) -> ServiceRecord:
    return ServiceRecord(
        dct["id"],
        dct["truckId"],
        dct["maintenanceTypeId"],
        dct["workOrderId"],
        dct["hoursAtService"],
        _timestamp(dct["performedAt"]),
        dct.get("sequence", 0),
        dct.get("odometerAtService"),
        dct.get("performedBy"),
        dct.get("notes"),
    )


def _parse_audit_entry(dct: Dict[str, Any]) -> AuditEntry:
    return AuditEntry(
        id=dct["id"],
        entity_type=dct["entityType"],
        entity_id=dct["entityId"],
        actor_id=dct["actorId"],
        reason=dct["reason"],
        timestamp=_timestamp(dct["timestamp"]),
        old_value=dct.get("oldValue") or {},
        new_value=dct.get("newValue") or {},
    )


def _parse_document(dct: Dict[str, Any]) -> TruckDocument:
    return TruckDocument(
        dct["id"],
        dct["truckId"],
        dct["documentName"],
        _timestamp(dct["startDate"]),
        _timestamp(dct["expirationDate"]),
        dct.get("fileName"),
        dct.get("uploadedBy"),
        dct.get("notes"),
        dct.get("createdAt"),
        dct.get("updatedAt"),
    )


def parse_fleet(data: Optional[Dict[str, Any]]) -> FleetState:
    """Build a FleetState from the raw YAML document."""
    data = data or {}
    meta = data.get("meta") or {}

    def section(key: str, parse) -> List[Any]:
        return [parse(d) for d in data.get(key) or []]

    return FleetState(
        actors=section("actors", _parse_actor),
        trucks=section("trucks", _parse_truck),
        maintenance_types=section("maintenanceTypes", _parse_maintenance_type),
        checkpoints=section("checkpoints", _parse_checkpoint),
        open_sessions=section("openSessions", _parse_open_session),
        sessions=section("sessions", _parse_session),
        work_orders=section("workOrders", _parse_work_order),
        service_records=section("serviceRecords", _parse_service_record),
        audit_log=section("auditLog", _parse_audit_entry),
        documents=section("documents", _parse_document),
        work_order_serial=meta.get("workOrderSerial", 0),
        sequence=meta.get("sequence", 0),
    )


# =============================================================================
# Serialization (objects -> YAML dict, camelCase keys)
# =============================================================================


def truck_to_dict(truck: Truck) -> Dict[str, Any]:
    return _drop_none(
        {
            "id": truck.id,
            "truckNumber": truck.truck_number,
            "brand": truck.brand,
            "model": truck.model,
            "year": truck.year,
            "status": truck.status.value,
            "currentOdometer": truck.current_odometer,
            "currentWorkedHours": truck.current_worked_hours,
            "createdAt": truck.created_at,
            "updatedAt": truck.updated_at,
        }
    )


def maintenance_type_to_dict(maintenance_type: MaintenanceType) -> Dict[str, Any]:
    return {
        "id": maintenance_type.id,
        "name": maintenance_type.name,
        "intervalHours": maintenance_type.interval_hours,
        "warningBeforeHours": maintenance_type.warning_before_hours,
        "isActive": maintenance_type.is_active,
    }


def session_to_dict(session: YardSession) -> Dict[str, Any]:
    return _drop_none(
        {
            "id": session.id,
            "truckId": session.truck_id,
            "entryAt": session.entry_at,
            "exitAt": session.exit_at,
            "odometer": session.odometer,
            "distanceDelta": session.distance_delta,
            "workedHours": session.worked_hours,
            "recordedBy": session.recorded_by,
            "sequence": session.sequence,
            "notes": session.notes,
            "createdAt": session.created_at,
            "updatedAt": session.updated_at,
        }
    )


def work_order_to_dict(order: WorkOrder) -> Dict[str, Any]:
    d = _drop_none(
        {
            "id": order.id,
            "serial": order.serial,
            "truckId": order.truck_id,
            "maintenanceTypeId": order.maintenance_type_id,
            "status": order.status.value,
            "dueAtHours": order.due_at_hours,
            "createdAt": order.created_at,
            "completedAt": order.completed_at,
            "assignedTo": order.assigned_to,
            "createdFromSessionId": order.created_from_session_id,
        }
    )
    d["autoGenerated"] = order.auto_generated
    return d


def service_record_to_dict(record: ServiceRecord) -> Dict[str, Any]:
    return _drop_none(
        {
            "id": record.id,
            "truckId": record.truck_id,
            "maintenanceTypeId": record.maintenance_type_id,
            "workOrderId": record.work_order_id,
            "hoursAtService": record.hours_at_service,
            "odometerAtService": record.odometer_at_service,
            "performedAt": record.performed_at,
            "performedBy": record.performed_by,
            "sequence": record.sequence,
            "notes": record.notes,
        }
    )


def document_to_dict(document: TruckDocument) -> Dict[str, Any]:
    return _drop_none(
        {
            "id": document.id,
            "truckId": document.truck_id,
            "documentName": document.document_name,
            "startDate": document.start_date,
            "expirationDate": document.expiration_date,
            "fileName": document.file_name,
            "uploadedBy": document.uploaded_by,
            "notes": document.notes,
            "createdAt": document.created_at,
            "updatedAt": document.updated_at,
        }
    )


def fleet_to_dict(state: FleetState) -> Dict[str, Any]:
    """Serialize a FleetState to the YAML document format."""
    return {
        "meta": {
            "workOrderSerial": state.work_order_serial,
            "sequence": state.sequence,
        },
        "actors": [
            {"id": a.id, "name": a.name, "role": a.role.value} for a in state.actors
        ],
        "maintenanceTypes": [maintenance_type_to_dict(t) for t in state.maintenance_types],
        "trucks": [truck_to_dict(t) for t in state.trucks],
        "checkpoints": [
            _drop_none(
                {
                    "truckId": c.truck_id,
                    "maintenanceTypeId": c.maintenance_type_id,
                    "lastServiceHours": c.last_service_hours,
                    "lastServiceAt": c.last_service_at,
                    "updatedAt": c.updated_at,
                }
            )
            for c in state.checkpoints.values()
        ],
        "openSessions": [
            _drop_none(
                {
                    "id": s.id,
                    "truckId": s.truck_id,
                    "entryAt": s.entry_at,
                    "odometer": s.odometer,
                    "recordedBy": s.recorded_by,
                    "notes": s.notes,
                    "createdAt": s.created_at,
                }
            )
            for s in state.open_sessions
        ],
        "sessions": [session_to_dict(s) for s in state.sessions],
        "workOrders": [work_order_to_dict(o) for o in state.work_orders],
        "serviceRecords": [service_record_to_dict(r) for r in state.service_records],
        "documents": [document_to_dict(d) for d in state.documents],
        "auditLog": [
            {
                "id": e.id,
                "entityType": e.entity_type,
                "entityId": e.entity_id,
                "actorId": e.actor_id,
                "reason": e.reason,
                "timestamp": e.timestamp,
                "oldValue": dict(e.old_value),
                "newValue": dict(e.new_value),
            }
            for e in state.audit_log
        ],
    }


# =============================================================================
# File I/O
# =============================================================================


def load_fleet(filename: Union[str, Path]) -> FleetState:
    """Load a fleet snapshot from a YAML file."""
    with open(filename, "r") as fp:
        return parse_fleet(yaml.load(fp, Loader=yaml.SafeLoader))


def save_fleet(filename: Union[str, Path], state: FleetState) -> None:
    """
    Write a fleet snapshot to a YAML file.

    The document is written to a temporary file in the same directory and
    moved into place, so readers never see a half-written snapshot.
    """
    path = Path(filename)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as fp:
            yaml.dump(
                fleet_to_dict(state),
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise


def create_fleet(filename: Union[str, Path], admin_name: str = "Administrator") -> FleetState:
    """Create a new, empty fleet file with one admin actor."""
    state = FleetState()
    state.add_actor(admin_name, Role.ADMIN)
    save_fleet(filename, state)
    return state


@contextmanager
def fleet_transaction(
    filename: Union[str, Path], dry_run: bool = False
) -> Iterator[FleetState]:
    """
    Load the snapshot, hand it to one operation, and save it back.

    Nothing is written when the block raises (or on dry runs), so a failed
    operation never leaves a partial write behind.
    """
    state = load_fleet(filename)
    yield state
    if dry_run:
        logger.info("Dry run: %s left unchanged", filename)
        return
    save_fleet(filename, state)
