"""Enums for maintenance health, work order, truck and document status, and actor roles."""

from enum import Enum


class Health(Enum):
    """Maintenance health categories. Lower value = more urgent."""

    OVERDUE = 1
    DUE = 2  # Exactly at the interval boundary
    DUE_SOON = 3
    OK = 4


class WorkOrderStatus(Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_open(self) -> bool:
        return self in (WorkOrderStatus.PENDING, WorkOrderStatus.IN_PROGRESS)


class TruckStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class Role(Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"
    MECHANIC = "MECHANIC"


class DocumentStatus(Enum):
    """Expiration state of a truck document."""

    EXPIRED = "EXPIRED"
    DUE_SOON = "DUE_SOON"  # Within DOCUMENT_WARNING_DAYS of expiring
    VALID = "VALID"
