"""FleetState class - the snapshot every engine operation reads and mutates."""

import uuid
from typing import Any, Dict, List, Optional, Tuple

from .actor import Actor
from .audit import AuditEntry
from .calculations import now_iso, timestamp_sort_key
from .checkpoint import MaintenanceCheckpoint, ensure_checkpoint
from .errors import ErrorCode, FleetError
from .maintenance_type import MaintenanceType
from .status import Role, TruckStatus
from .truck import Truck
from .truck_document import TruckDocument
from .work_order import ServiceRecord, WorkOrder
from .yard_session import OpenYardSession, YardSession


def new_id() -> str:
    return str(uuid.uuid4())


class FleetState:
    """
    Complete fleet snapshot: trucks, yard ledger, maintenance, documents and
    audit data.

    Operations receive the snapshot explicitly and mutate it in place; the
    caller decides when (and whether) to persist it.
    """

    def __init__(
        self,
        actors: Optional[List[Actor]] = None,
        trucks: Optional[List[Truck]] = None,
        maintenance_types: Optional[List[MaintenanceType]] = None,
        checkpoints: Optional[List[MaintenanceCheckpoint]] = None,
        open_sessions: Optional[List[OpenYardSession]] = None,
        sessions: Optional[List[YardSession]] = None,
        work_orders: Optional[List[WorkOrder]] = None,
        service_records: Optional[List[ServiceRecord]] = None,
        audit_log: Optional[List[AuditEntry]] = None,
        documents: Optional[List[TruckDocument]] = None,
        work_order_serial: int = 0,
        sequence: int = 0,
    ):
        self.actors = actors or []
        self.trucks = trucks or []
        self.maintenance_types = maintenance_types or []
        self.checkpoints: Dict[Tuple[str, str], MaintenanceCheckpoint] = {
            c.key: c for c in (checkpoints or [])
        }
        self.open_sessions = open_sessions or []
        self.sessions = sessions or []
        self.work_orders = work_orders or []
        self.service_records = service_records or []
        self.audit_log = audit_log or []
        self.documents = documents or []
        self.work_order_serial = work_order_serial
        self.sequence = sequence

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    def next_sequence(self) -> int:
        """Creation-order counter used to break timestamp ties."""
        self.sequence += 1
        return self.sequence

    def next_work_order_serial(self) -> int:
        self.work_order_serial += 1
        return self.work_order_serial

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_actor(self, actor_id: str) -> Optional[Actor]:
        for actor in self.actors:
            if actor.id == actor_id:
                return actor
        return None

    def get_truck(self, truck_id: str) -> Optional[Truck]:
        for truck in self.trucks:
            if truck.id == truck_id:
                return truck
        return None

    def get_truck_by_number(self, truck_number: str) -> Optional[Truck]:
        """Find a truck by its number (case-insensitive)."""
        wanted = truck_number.strip().upper()
        for truck in self.trucks:
            if truck.truck_number == wanted:
                return truck
        return None

    def require_truck(self, truck_id: str) -> Truck:
        truck = self.get_truck(truck_id)
        if truck is None:
            raise FleetError(ErrorCode.NOT_FOUND, f"Truck '{truck_id}' not found")
        return truck

    def get_maintenance_type(self, maintenance_type_id: str) -> Optional[MaintenanceType]:
        for maintenance_type in self.maintenance_types:
            if maintenance_type.id == maintenance_type_id:
                return maintenance_type
        return None

    def active_maintenance_types(self) -> List[MaintenanceType]:
        """Active maintenance types, shortest interval first."""
        return sorted(
            (t for t in self.maintenance_types if t.is_active),
            key=lambda t: t.interval_hours,
        )

    def get_open_session(self, truck_id: str) -> Optional[OpenYardSession]:
        for session in self.open_sessions:
            if session.truck_id == truck_id:
                return session
        return None

    def get_session(self, session_id: str) -> Optional[YardSession]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def get_sessions_for_truck(self, truck_id: str) -> List[YardSession]:
        """Closed sessions of a truck in chronological (exit, creation) order."""
        return sorted(
            (s for s in self.sessions if s.truck_id == truck_id),
            key=lambda s: (timestamp_sort_key(s.exit_at), s.sequence),
        )

    def get_work_order(self, work_order_id: str) -> Optional[WorkOrder]:
        for order in self.work_orders:
            if order.id == work_order_id:
                return order
        return None

    def require_work_order(self, work_order_id: str) -> WorkOrder:
        order = self.get_work_order(work_order_id)
        if order is None:
            raise FleetError(
                ErrorCode.NOT_FOUND, f"Work order '{work_order_id}' not found"
            )
        return order

    def get_open_work_order(
        self, truck_id: str, maintenance_type_id: str
    ) -> Optional[WorkOrder]:
        """The single PENDING/IN_PROGRESS order for a pair, if any."""
        for order in self.work_orders:
            if (
                order.truck_id == truck_id
                and order.maintenance_type_id == maintenance_type_id
                and order.is_open
            ):
                return order
        return None

    def get_work_orders_for_truck(self, truck_id: str) -> List[WorkOrder]:
        """All orders of a truck, newest first."""
        return sorted(
            (o for o in self.work_orders if o.truck_id == truck_id),
            key=lambda o: o.serial,
            reverse=True,
        )

    def get_service_record(self, work_order_id: str) -> Optional[ServiceRecord]:
        for record in self.service_records:
            if record.work_order_id == work_order_id:
                return record
        return None

    def get_service_records(
        self, truck_id: str, maintenance_type_id: str
    ) -> List[ServiceRecord]:
        return [
            r
            for r in self.service_records
            if r.truck_id == truck_id and r.maintenance_type_id == maintenance_type_id
        ]

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def add_actor(self, name: str, role: Role = Role.OPERATOR) -> Actor:
        actor = Actor(new_id(), name.strip(), role)
        self.actors.append(actor)
        return actor

    def add_truck(
        self,
        truck_number: str,
        brand: str,
        model: str,
        year: int,
        status: TruckStatus = TruckStatus.ACTIVE,
    ) -> Truck:
        """Register a truck and start its checkpoints at 0 hours."""
        number = truck_number.strip().upper()
        if not number:
            raise FleetError(ErrorCode.INVALID_INPUT, "Truck number is required")
        if self.get_truck_by_number(number) is not None:
            raise FleetError(
                ErrorCode.DUPLICATE, f"A truck numbered '{number}' already exists"
            )

        now = now_iso()
        truck = Truck(
            new_id(),
            number,
            brand.strip(),
            model.strip(),
            year,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.trucks.append(truck)
        for maintenance_type in self.active_maintenance_types():
            ensure_checkpoint(self, truck.id, maintenance_type.id)
        return truck

    def add_maintenance_type(
        self,
        name: str,
        interval_hours: float,
        warning_before_hours: float = 0,
        is_active: bool = True,
    ) -> MaintenanceType:
        if interval_hours <= 0:
            raise FleetError(
                ErrorCode.INVALID_INTERVAL, "Interval must be a positive number of hours"
            )
        if warning_before_hours < 0:
            raise FleetError(
                ErrorCode.INVALID_INTERVAL, "Warning threshold cannot be negative"
            )
        maintenance_type = MaintenanceType(
            new_id(), name.strip(), interval_hours, warning_before_hours, is_active
        )
        self.maintenance_types.append(maintenance_type)
        return maintenance_type

    # -------------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------------

    def record_audit(
        self,
        entity_type: str,
        entity_id: str,
        actor_id: str,
        reason: str,
        old_value: Dict[str, Any],
        new_value: Dict[str, Any],
    ) -> AuditEntry:
        """Append an entry to the audit trail. Entries are never edited."""
        entry = AuditEntry(
            id=new_id(),
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            reason=reason,
            timestamp=now_iso(),
            old_value=old_value,
            new_value=new_value,
        )
        self.audit_log.append(entry)
        return entry
