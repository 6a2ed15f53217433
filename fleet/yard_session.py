"""Yard session records: one entry->exit visit of a truck."""

from typing import Optional


class OpenYardSession:
    """A truck currently in the yard, waiting for its exit to be recorded."""

    def __init__(
        self,
        id: str,
        truck_id: str,
        entry_at: str,
        odometer: int,
        recorded_by: str,
        notes: Optional[str] = None,
        created_at: Optional[str] = None,
    ):
        self.id = id
        self.truck_id = truck_id
        self.entry_at = entry_at
        self.odometer = odometer
        self.recorded_by = recorded_by
        self.notes = notes
        self.created_at = created_at


class YardSession:
    """
    A closed yard session.

    Only `odometer` is ever corrected after creation; `distance_delta` and
    `worked_hours` are re-derived by reconciliation.
    """

    def __init__(
        self,
        id: str,
        truck_id: str,
        entry_at: str,
        exit_at: str,
        odometer: int,
        distance_delta: int,
        worked_hours: float,
        recorded_by: str,
        sequence: int,
        notes: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ):
        self.id = id
        self.truck_id = truck_id
        self.entry_at = entry_at
        self.exit_at = exit_at
        self.odometer = odometer
        self.distance_delta = distance_delta
        self.worked_hours = worked_hours
        self.recorded_by = recorded_by
        self.sequence = sequence
        self.notes = notes
        self.created_at = created_at
        self.updated_at = updated_at
