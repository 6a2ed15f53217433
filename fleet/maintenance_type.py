"""MaintenanceType class for hour-based service interval definitions."""


class MaintenanceType:
    """A preventive maintenance task repeated every `interval_hours` worked."""

    def __init__(
        self,
        id: str,
        name: str,
        interval_hours: float,
        warning_before_hours: float = 0,
        is_active: bool = True,
    ):
        self.id = id
        self.name = name
        self.interval_hours = interval_hours
        self.warning_before_hours = warning_before_hours or 0
        self.is_active = is_active

    def due_at(self, last_service_hours: float) -> float:
        """Worked-hours value at which the next service falls due."""
        return last_service_hours + self.interval_hours
