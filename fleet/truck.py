"""Truck class for fleet vehicle identification and utilization."""

from typing import Optional

from .status import TruckStatus


class Truck:
    """A fleet truck with its current odometer reading and worked hours."""

    def __init__(
        self,
        id: str,
        truck_number: str,
        brand: str,
        model: str,
        year: int,
        current_odometer: int = 0,
        current_worked_hours: float = 0,
        status: TruckStatus = TruckStatus.ACTIVE,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ):
        self.id = id
        self.truck_number = truck_number
        self.brand = brand
        self.model = model
        self.year = year
        self.current_odometer = current_odometer or 0
        self.current_worked_hours = current_worked_hours or 0
        self.status = status
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def name(self) -> str:
        """Human-readable truck name."""
        return f"{self.truck_number} ({self.year} {self.brand} {self.model})"
