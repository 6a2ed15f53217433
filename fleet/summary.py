"""Read-only health views for dashboards and status reports."""

from typing import Any, Dict, List, TYPE_CHECKING

from .calculations import classify_health, round2
from .health_snapshot import HealthSnapshot
from .status import Health

if TYPE_CHECKING:
    from .fleet_state import FleetState
    from .truck import Truck

# Partial credit per health state in the fleet health score
HEALTH_SCORE_WEIGHTS = {
    Health.OK: 1.0,
    Health.DUE_SOON: 0.7,
    Health.DUE: 0.4,
    Health.OVERDUE: 0.0,
}


def truck_health(state: "FleetState", truck_id: str) -> List[HealthSnapshot]:
    """
    Health of every active maintenance type on a truck.

    Unlike `evaluate_vehicle`, this never creates checkpoints or touches work
    orders.
    """
    truck = state.require_truck(truck_id)
    snapshots = []
    for maintenance_type in state.active_maintenance_types():
        checkpoint = state.checkpoints.get((truck.id, maintenance_type.id))
        last_hours = checkpoint.last_service_hours if checkpoint else 0
        hours_since = round2(truck.current_worked_hours - last_hours)
        open_order = state.get_open_work_order(truck.id, maintenance_type.id)
        snapshots.append(
            HealthSnapshot(
                maintenance_type=maintenance_type,
                health=classify_health(
                    hours_since,
                    maintenance_type.interval_hours,
                    maintenance_type.warning_before_hours,
                ),
                last_service_hours=last_hours,
                hours_since_service=hours_since,
                remaining_hours=round2(maintenance_type.interval_hours - hours_since),
                overdue_hours=round2(
                    max(0, hours_since - maintenance_type.interval_hours)
                ),
                open_work_order_id=open_order.id if open_order else None,
                open_work_order_number=open_order.number if open_order else None,
            )
        )
    return snapshots


def next_maintenance(state: "FleetState", truck: "Truck") -> Dict[str, Any]:
    """The maintenance type with the fewest remaining hours on a truck."""
    snapshots = truck_health(state, truck.id)
    if not snapshots:
        return {"maintenanceName": None, "remainingHours": 0, "completion": 0}
    nearest = min(snapshots, key=lambda s: s.remaining_hours)
    interval = nearest.maintenance_type.interval_hours
    completion = min(100, max(0, nearest.hours_since_service / interval * 100))
    return {
        "maintenanceName": nearest.maintenance_type.name,
        "remainingHours": nearest.remaining_hours,
        "completion": round2(completion),
    }


def health_score(counts: Dict[Health, int]) -> int:
    """Weighted share of healthy checkpoints, 0-100 (100 with no checkpoints)."""
    total = sum(counts.values())
    if total == 0:
        return 100
    weighted = sum(HEALTH_SCORE_WEIGHTS[h] * n for h, n in counts.items())
    return round(weighted / total * 100)


def fleet_summary(state: "FleetState") -> Dict[str, Any]:
    """Fleet-wide health distribution, score, and open work orders."""
    counts = {health: 0 for health in Health}
    progress = []
    for truck in sorted(state.trucks, key=lambda t: t.truck_number):
        for snapshot in truck_health(state, truck.id):
            counts[snapshot.health] += 1
        progress.append(
            {
                "truckId": truck.id,
                "truckNumber": truck.truck_number,
                **next_maintenance(state, truck),
            }
        )

    open_orders = []
    for order in sorted(state.work_orders, key=lambda o: o.serial, reverse=True):
        if not order.is_open:
            continue
        truck = state.get_truck(order.truck_id)
        maintenance_type = state.get_maintenance_type(order.maintenance_type_id)
        open_orders.append(
            {
                "id": order.id,
                "number": order.number,
                "truckNumber": truck.truck_number if truck else None,
                "maintenanceName": maintenance_type.name if maintenance_type else None,
                "status": order.status.value,
                "dueAtHours": order.due_at_hours,
            }
        )

    return {
        "totals": {
            "trucks": len(state.trucks),
            "checkpoints": sum(counts.values()),
            "openOrders": len(open_orders),
        },
        "healthDistribution": {health.name: n for health, n in counts.items()},
        "fleetHealthScore": health_score(counts),
        "progressByTruck": progress,
        "openOrders": open_orders,
    }
