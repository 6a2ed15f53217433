"""HealthSnapshot dataclass for evaluated maintenance status."""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .status import Health

if TYPE_CHECKING:
    from .maintenance_type import MaintenanceType


@dataclass
class HealthSnapshot:
    """Evaluated health of one maintenance type on one truck."""

    maintenance_type: "MaintenanceType"
    health: Health
    last_service_hours: float = 0
    hours_since_service: float = 0
    remaining_hours: float = 0
    overdue_hours: float = 0
    open_work_order_id: Optional[str] = None
    open_work_order_number: Optional[str] = None
    work_order_created: bool = False

    @property
    def is_due(self) -> bool:
        """True when a work order is warranted (DUE or OVERDUE)."""
        return self.health in (Health.OVERDUE, Health.DUE)
