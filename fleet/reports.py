"""
Service-history reports over a date range.

The summary groups completed services per truck and adds each truck's nearest
upcoming maintenance. The detail report lists every service in the range,
newest first.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .calculations import parse_timestamp, round2, timestamp_sort_key
from .config import REPORT_PERIOD_DAYS
from .errors import ErrorCode, FleetError
from .summary import truck_health
from .work_order import ServiceRecord

if TYPE_CHECKING:
    from .fleet_state import FleetState
    from .truck import Truck

REPORT_PERIODS = tuple(REPORT_PERIOD_DAYS) + ("custom",)

UNKNOWN = "N/A"


def _is_date_only(value: str) -> bool:
    return len(value.strip()) == len("YYYY-MM-DD")


def report_range(
    period: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Resolve a report period to a (start, end) pair.

    "week" and "month" are rolling windows ending now (7 and 30 days).
    "custom" needs both bounds; a date-only upper bound covers that whole day.
    """
    period = (period or "week").strip().lower()
    now = now or datetime.now(timezone.utc)
    if period in REPORT_PERIOD_DAYS:
        return now - timedelta(days=REPORT_PERIOD_DAYS[period]), now
    if period != "custom":
        raise FleetError(
            ErrorCode.INVALID_INPUT,
            f"Unknown period '{period}' (expected one of: {', '.join(REPORT_PERIODS)})",
        )

    if not date_from or not date_to:
        raise FleetError(ErrorCode.INVALID_INPUT, "A custom period needs both 'from' and 'to'")
    start = parse_timestamp(date_from)
    end = parse_timestamp(date_to)
    if start is None or end is None:
        raise FleetError(
            ErrorCode.INVALID_TIME, f"Invalid custom range: {date_from!r} to {date_to!r}"
        )
    if _is_date_only(date_to):
        end += timedelta(days=1) - timedelta(microseconds=1)
    if end < start:
        raise FleetError(ErrorCode.INVALID_TIME_RANGE, "Range end cannot be before its start")
    return start, end


def service_rows(
    state: "FleetState",
    start: datetime,
    end: datetime,
    truck_id: Optional[str] = None,
) -> List[ServiceRecord]:
    """Service records performed within [start, end], newest first."""
    if truck_id:
        state.require_truck(truck_id)
    rows = []
    for record in state.service_records:
        if truck_id and record.truck_id != truck_id:
            continue
        performed = parse_timestamp(record.performed_at)
        if performed is not None and start <= performed <= end:
            rows.append(record)
    return sorted(
        rows,
        key=lambda r: (timestamp_sort_key(r.performed_at), r.sequence),
        reverse=True,
    )


def _maintenance_name(state: "FleetState", maintenance_type_id: str) -> str:
    maintenance_type = state.get_maintenance_type(maintenance_type_id)
    return maintenance_type.name if maintenance_type else UNKNOWN


def next_due(state: "FleetState", truck: "Truck") -> Optional[Dict[str, Any]]:
    """The active maintenance closest to (or furthest past) its due point."""
    snapshots = truck_health(state, truck.id)
    if not snapshots:
        return None
    nearest = min(snapshots, key=lambda s: s.remaining_hours)
    if nearest.remaining_hours < 0:
        label = "OVERDUE"
    elif nearest.remaining_hours == 0:
        label = "DUE"
    else:
        label = "UPCOMING"
    return {
        "maintenanceType": nearest.maintenance_type.name,
        "dueAtWorkedHours": round2(nearest.maintenance_type.due_at(nearest.last_service_hours)),
        "remainingHours": nearest.remaining_hours,
        "state": label,
    }


def _range_dict(start: datetime, end: datetime) -> Dict[str, str]:
    return {"start": start.isoformat(), "end": end.isoformat()}


def report_summary(
    state: "FleetState",
    start: datetime,
    end: datetime,
    truck_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Per-truck service counts for the range.

    Each truck lists, per maintenance type serviced in the range, how many
    services were done and when, plus its latest service and its next due
    maintenance (which does not depend on the range).
    """
    rows = service_rows(state, start, end, truck_id)
    trucks = sorted(
        (t for t in state.trucks if not truck_id or t.id == truck_id),
        key=lambda t: t.truck_number,
    )

    summary_by_truck = []
    for truck in trucks:
        truck_rows = [r for r in rows if r.truck_id == truck.id]
        services: Dict[str, Dict[str, Any]] = {}
        for record in reversed(truck_rows):
            name = _maintenance_name(state, record.maintenance_type_id)
            entry = services.setdefault(name, {"maintenanceType": name, "count": 0, "dates": []})
            entry["count"] += 1
            entry["dates"].append(record.performed_at)

        last = truck_rows[0] if truck_rows else None
        summary_by_truck.append(
            {
                "truckId": truck.id,
                "truckNumber": truck.truck_number,
                "services": list(services.values()),
                "lastService": (
                    {
                        "date": last.performed_at,
                        "service": _maintenance_name(state, last.maintenance_type_id),
                        "workedHours": last.hours_at_service,
                    }
                    if last
                    else None
                ),
                "nextMaintenance": next_due(state, truck),
            }
        )

    return {
        "range": _range_dict(start, end),
        "totalServices": len(rows),
        "summaryByTruck": summary_by_truck,
    }


def report_detail(
    state: "FleetState",
    start: datetime,
    end: datetime,
    truck_id: Optional[str] = None,
) -> Dict[str, Any]:
    """One row per service in the range, newest first."""
    detail = []
    for record in service_rows(state, start, end, truck_id):
        truck = state.get_truck(record.truck_id)
        actor = state.get_actor(record.performed_by) if record.performed_by else None
        order = state.get_work_order(record.work_order_id)
        detail.append(
            {
                "date": record.performed_at,
                "truck": truck.truck_number if truck else UNKNOWN,
                "service": _maintenance_name(state, record.maintenance_type_id),
                "workedHours": record.hours_at_service,
                "user": actor.name if actor else UNKNOWN,
                "workOrderNumber": order.number if order else UNKNOWN,
            }
        )
    return {"range": _range_dict(start, end), "rows": detail}
