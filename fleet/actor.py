"""Actors (users) and the guard for privileged operations."""

from typing import Optional, TYPE_CHECKING

from .config import MIN_REASON_LENGTH
from .errors import ErrorCode, FleetError
from .status import Role

if TYPE_CHECKING:
    from .fleet_state import FleetState


class Actor:
    """A person recording yard movements or servicing trucks."""

    def __init__(self, id: str, name: str, role: Role = Role.OPERATOR):
        self.id = id
        self.name = name
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_admin(state: "FleetState", actor_id: Optional[str]) -> Actor:
    """Return the actor if it may run privileged operations, else raise FORBIDDEN."""
    actor = state.get_actor(actor_id) if actor_id else None
    if actor is None or not actor.is_admin:
        raise FleetError(ErrorCode.FORBIDDEN, "Operation allowed for admins only")
    return actor


def require_reason(reason: Optional[str]) -> str:
    """Return the stripped reason, or raise REASON_TOO_SHORT."""
    cleaned = (reason or "").strip()
    if len(cleaned) < MIN_REASON_LENGTH:
        raise FleetError(
            ErrorCode.REASON_TOO_SHORT,
            f"A reason of at least {MIN_REASON_LENGTH} characters is required",
        )
    return cleaned
