#!/usr/bin/env python3
"""
Unified CLI for truck yard and maintenance tracking.

Commands:
  init       - Create a new fleet file
  add-actor  - Register a user
  add-truck  - Register a truck
  add-type   - Define a maintenance type
  edit-truck - Edit a truck (admin)
  edit-type  - Edit or deactivate a maintenance type (admin)
  types      - List maintenance types
  trucks     - List trucks with their utilization
  status     - Show maintenance health (one truck or the whole fleet)
  enter      - Record a truck entering the yard
  exit       - Record a truck leaving the yard
  sessions   - View a truck's yard ledger
  orders     - List work orders
  start      - Start a work order
  complete   - Complete a work order
  revert     - Revert a completed work order (admin)
  correct    - Correct a yard session's odometer (admin)
  adjust     - Adjust a truck's current odometer (admin)
  audit      - View the audit trail
  report     - Service-history report for a period
  add-document - Attach a dated document to a truck
  documents  - List truck documents by expiration
"""

import argparse
import logging
import sys
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from fleet import (
    FleetError,
    FleetState,
    Health,
    HealthSnapshot,
    Role,
    TruckStatus,
    WorkOrder,
    WorkOrderStatus,
    YardSession,
    add_truck_document,
    adjust_current_reading,
    classify_document_expiration,
    close_yard_session,
    complete_work_order,
    correct_reading,
    create_fleet,
    fleet_summary,
    fleet_transaction,
    load_fleet,
    open_yard_session,
    report_detail,
    report_range,
    report_summary,
    revert_work_order,
    start_work_order,
    truck_documents,
    truck_health,
    update_maintenance_type,
    update_truck,
)
from fleet.calculations import now_iso
from fleet.config import fleet_file, log_level
from fleet.errors import ErrorCode

logger = logging.getLogger("fleetmaint")

# =============================================================================
# Formatting helpers
# =============================================================================


def format_hours(hours: Optional[float]) -> str:
    """Format worked hours for display."""
    return f"{hours:,.2f}" if hours is not None else "-"


def format_odometer(reading: Optional[int]) -> str:
    """Format an odometer reading for display."""
    return f"{reading:,}" if reading is not None else "-"


def format_remaining(svc: HealthSnapshot) -> str:
    """Format remaining hours; overdue shows as negative."""
    if svc.overdue_hours > 0:
        return f"-{svc.overdue_hours:,.2f}"
    return f"{svc.remaining_hours:,.2f}"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


# =============================================================================
# Lookups by human-friendly reference
# =============================================================================


def resolve_truck_id(state: FleetState, ref: str) -> str:
    """Accept a truck number (TRK-001) or id."""
    truck = state.get_truck_by_number(ref) or state.get_truck(ref)
    if truck is None:
        raise FleetError(ErrorCode.NOT_FOUND, f"Unknown truck '{ref}'")
    return truck.id


def resolve_order_id(state: FleetState, ref: str) -> str:
    """Accept a work order number (WO-000001) or id."""
    for order in state.work_orders:
        if order.id == ref or order.number.lower() == ref.lower():
            return order.id
    raise FleetError(ErrorCode.NOT_FOUND, f"Unknown work order '{ref}'")


def resolve_type_id(state: FleetState, ref: str) -> str:
    """Accept a maintenance type name (case-insensitive) or id."""
    for maintenance_type in state.maintenance_types:
        if maintenance_type.id == ref or maintenance_type.name.lower() == ref.strip().lower():
            return maintenance_type.id
    raise FleetError(ErrorCode.NOT_FOUND, f"Unknown maintenance type '{ref}'")


def resolve_actor_id(state: FleetState, ref: Optional[str]) -> str:
    """
    Accept an actor name or id.

    Without a reference, the first admin (or first actor) acts.
    """
    if ref:
        for actor in state.actors:
            if actor.id == ref or actor.name.lower() == ref.lower():
                return actor.id
        raise FleetError(ErrorCode.NOT_FOUND, f"Unknown actor '{ref}'")
    admins = [a for a in state.actors if a.role == Role.ADMIN]
    fallback = admins or state.actors
    if not fallback:
        raise FleetError(ErrorCode.NOT_FOUND, "No actors registered")
    return fallback[0].id


# =============================================================================
# Tables
# =============================================================================


def make_health_table(snapshots: List[HealthSnapshot]) -> List[List[str]]:
    """Convert health snapshots to table rows."""
    rows = []
    for svc in snapshots:
        rows.append(
            [
                svc.maintenance_type.name,
                format_hours(svc.last_service_hours),
                format_hours(svc.hours_since_service),
                format_hours(svc.maintenance_type.interval_hours),
                format_remaining(svc),
                svc.open_work_order_number or "-",
            ]
        )
    return rows


def make_order_table(orders: List[WorkOrder], state: FleetState) -> List[List[str]]:
    """Convert work orders to table rows."""
    rows = []
    for order in orders:
        truck = state.get_truck(order.truck_id)
        maintenance_type = state.get_maintenance_type(order.maintenance_type_id)
        assignee = state.get_actor(order.assigned_to) if order.assigned_to else None
        rows.append(
            [
                order.number,
                truck.truck_number if truck else order.truck_id,
                maintenance_type.name if maintenance_type else order.maintenance_type_id,
                order.status.value,
                format_hours(order.due_at_hours),
                assignee.name if assignee else "-",
                "auto" if order.auto_generated else "manual",
            ]
        )
    return rows


def make_session_table(sessions: List[YardSession]) -> List[List[str]]:
    """Convert closed yard sessions to table rows."""
    return [
        [
            s.id[:8],
            s.entry_at,
            s.exit_at,
            format_odometer(s.odometer),
            format_odometer(s.distance_delta),
            format_hours(s.worked_hours),
            truncate(s.notes),
        ]
        for s in sessions
    ]


# =============================================================================
# Setup commands
# =============================================================================


def cmd_init(args):
    """Create a new fleet file."""
    if args.fleet_file.exists():
        print(f"Error: File already exists: {args.fleet_file}")
        return 1
    state = create_fleet(args.fleet_file, args.admin)
    print(f"Created {args.fleet_file} (admin: {state.actors[0].name})")
    return 0


def cmd_add_actor(args):
    """Register a user."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        actor = state.add_actor(args.name, Role(args.role.upper()))
    print(f"Added {actor.role.value.lower()} {actor.name} ({actor.id})")
    return 0


def cmd_add_truck(args):
    """Register a truck."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        truck = state.add_truck(args.number, args.brand, args.model, args.year)
    print(f"Added truck {truck.name}")
    return 0


def cmd_add_type(args):
    """Define a maintenance type."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        maintenance_type = state.add_maintenance_type(
            args.name, args.interval, args.warning
        )
    print(
        f"Added maintenance type {maintenance_type.name} "
        f"(every {format_hours(maintenance_type.interval_hours)} h, "
        f"warn {format_hours(maintenance_type.warning_before_hours)} h before)"
    )
    return 0


def cmd_edit_truck(args):
    """Edit a truck's details."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        truck = update_truck(
            state,
            resolve_truck_id(state, args.truck),
            resolve_actor_id(state, args.actor),
            truck_number=args.number,
            brand=args.brand,
            model=args.model,
            year=args.year,
            status=TruckStatus(args.status.upper()) if args.status else None,
            reason=args.reason,
        )
    print(f"Updated truck {truck.name} [{truck.status.value}]")
    return 0


def cmd_edit_type(args):
    """Edit or deactivate a maintenance type."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        maintenance_type = update_maintenance_type(
            state,
            resolve_type_id(state, args.type),
            resolve_actor_id(state, args.actor),
            name=args.name,
            interval_hours=args.interval,
            warning_before_hours=args.warning,
            is_active=args.active,
            reason=args.reason,
        )
    print(
        f"Updated maintenance type {maintenance_type.name} "
        f"(every {format_hours(maintenance_type.interval_hours)} h, "
        f"warn {format_hours(maintenance_type.warning_before_hours)} h before, "
        f"{'active' if maintenance_type.is_active else 'inactive'})"
    )
    return 0


def cmd_types(args):
    """List maintenance types."""
    state = load_fleet(args.fleet_file)
    rows = [
        [
            t.name,
            format_hours(t.interval_hours),
            format_hours(t.warning_before_hours),
            "yes" if t.is_active else "no",
        ]
        for t in sorted(state.maintenance_types, key=lambda t: t.interval_hours)
    ]
    if not rows:
        print("No maintenance types found.")
        return 0
    headers = ["Maintenance", "Interval (h)", "Warning (h)", "Active"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Status commands
# =============================================================================


def cmd_trucks(args):
    """List trucks with their utilization."""
    state = load_fleet(args.fleet_file)
    rows = []
    for truck in sorted(state.trucks, key=lambda t: t.truck_number):
        rows.append(
            [
                truck.truck_number,
                f"{truck.year} {truck.brand} {truck.model}",
                truck.status.value,
                format_odometer(truck.current_odometer),
                format_hours(truck.current_worked_hours),
                "yes" if state.get_open_session(truck.id) else "no",
            ]
        )
    headers = ["Truck", "Model", "Status", "Odometer", "Hours", "In Yard"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def print_fleet_summary(state: FleetState) -> None:
    summary = fleet_summary(state)
    totals = summary["totals"]
    print(f"Trucks: {totals['trucks']}")
    print(f"Fleet health score: {summary['fleetHealthScore']}")
    print(f"Open work orders: {totals['openOrders']}")
    print()
    distribution = summary["healthDistribution"]
    print(
        tabulate(
            [[name, distribution[name]] for name in distribution],
            headers=["Health", "Checkpoints"],
            tablefmt="simple",
        )
    )
    print()
    rows = [
        [
            p["truckNumber"],
            p["maintenanceName"] or "-",
            format_hours(p["remainingHours"]),
            f"{p['completion']:.0f}%",
        ]
        for p in summary["progressByTruck"]
    ]
    print(
        tabulate(
            rows,
            headers=["Truck", "Next Maintenance", "Remaining (h)", "Progress"],
            tablefmt="simple",
        )
    )


def cmd_status(args):
    """Show maintenance health for one truck or the whole fleet."""
    state = load_fleet(args.fleet_file)
    if not args.truck:
        print_fleet_summary(state)
        return 0

    truck = state.get_truck(resolve_truck_id(state, args.truck))
    print(f"Truck: {truck.name}")
    print(
        f"Odometer: {format_odometer(truck.current_odometer)}  "
        f"Worked hours: {format_hours(truck.current_worked_hours)}"
    )
    print()

    snapshots = truck_health(state, truck.id)
    headers = ["Maintenance", "Last (h)", "Since (h)", "Interval (h)", "Remaining (h)", "Order"]
    for health, title in (
        (Health.OVERDUE, "OVERDUE"),
        (Health.DUE, "DUE"),
        (Health.DUE_SOON, "DUE SOON"),
        (Health.OK, "OK"),
    ):
        group = [s for s in snapshots if s.health == health]
        if group:
            print(f"{title}:")
            print(tabulate(make_health_table(group), headers=headers, tablefmt="simple"))
            print()
    return 0


# =============================================================================
# Yard commands
# =============================================================================


def cmd_enter(args):
    """Record a truck entering the yard."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        session = open_yard_session(
            state,
            resolve_truck_id(state, args.truck),
            args.time or now_iso(),
            args.odometer,
            resolve_actor_id(state, args.actor),
            args.notes,
        )
    print(f"Entry recorded at {session.entry_at} (odometer {format_odometer(session.odometer)})")
    return 0


def cmd_exit(args):
    """Record a truck leaving the yard."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        session, generated = close_yard_session(
            state, resolve_truck_id(state, args.truck), args.time or now_iso(), args.notes
        )
    print(
        f"Exit recorded: {format_hours(session.worked_hours)} h worked, "
        f"{format_odometer(session.distance_delta)} distance"
    )
    for order in generated:
        print(f"  Generated work order {order.number}")
    return 0


def cmd_sessions(args):
    """View a truck's yard ledger."""
    state = load_fleet(args.fleet_file)
    truck_id = resolve_truck_id(state, args.truck)
    sessions = state.get_sessions_for_truck(truck_id)
    if not sessions:
        print("No yard sessions found.")
        return 0
    headers = ["Id", "Entry", "Exit", "Odometer", "Delta", "Hours", "Notes"]
    print(tabulate(make_session_table(sessions), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Work order commands
# =============================================================================


def cmd_orders(args):
    """List work orders."""
    state = load_fleet(args.fleet_file)
    orders = sorted(state.work_orders, key=lambda o: o.serial, reverse=True)
    if args.truck:
        truck_id = resolve_truck_id(state, args.truck)
        orders = [o for o in orders if o.truck_id == truck_id]
    if args.status:
        wanted = WorkOrderStatus(args.status.upper())
        orders = [o for o in orders if o.status == wanted]
    if not orders:
        print("No work orders found.")
        return 0
    headers = ["Order", "Truck", "Maintenance", "Status", "Due (h)", "Assignee", "Origin"]
    print(tabulate(make_order_table(orders, state), headers=headers, tablefmt="simple"))
    return 0


def cmd_start(args):
    """Start a work order."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        order = start_work_order(
            state, resolve_order_id(state, args.order), resolve_actor_id(state, args.actor)
        )
    print(f"Work order {order.number} is {order.status.value}")
    return 0


def cmd_complete(args):
    """Complete a work order."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        order, snapshots = complete_work_order(
            state,
            resolve_order_id(state, args.order),
            args.hours,
            resolve_actor_id(state, args.actor),
            args.notes,
        )
    print(f"Work order {order.number} is {order.status.value}")
    for svc in snapshots:
        print(f"  {svc.maintenance_type.name}: {svc.health.name}")
    return 0


def cmd_revert(args):
    """Revert a completed work order."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        order = revert_work_order(
            state,
            resolve_order_id(state, args.order),
            resolve_actor_id(state, args.actor),
            args.reason,
        )
    print(f"Work order {order.number} reverted to {order.status.value}")
    return 0


# =============================================================================
# Correction commands
# =============================================================================


def cmd_correct(args):
    """Correct a yard session's odometer."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        matches = [s for s in state.sessions if s.id.startswith(args.session)]
        if len(matches) != 1:
            raise FleetError(ErrorCode.NOT_FOUND, f"Unknown yard session '{args.session}'")
        session = correct_reading(
            state,
            matches[0].id,
            args.odometer,
            resolve_actor_id(state, args.actor),
            args.reason,
        )
    print(f"Session {session.id[:8]} odometer set to {format_odometer(session.odometer)}")
    return 0


def cmd_adjust(args):
    """Adjust a truck's current odometer."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        truck = adjust_current_reading(
            state,
            resolve_truck_id(state, args.truck),
            args.odometer,
            resolve_actor_id(state, args.actor),
            args.reason,
        )
    print(f"Truck {truck.truck_number} odometer is {format_odometer(truck.current_odometer)}")
    return 0


def cmd_audit(args):
    """View the audit trail."""
    state = load_fleet(args.fleet_file)
    if not state.audit_log:
        print("No audit entries found.")
        return 0
    rows = []
    for entry in state.audit_log:
        actor = state.get_actor(entry.actor_id)
        rows.append(
            [
                entry.timestamp,
                entry.entity_type,
                actor.name if actor else entry.actor_id,
                entry.old_value,
                entry.new_value,
                truncate(entry.reason),
            ]
        )
    headers = ["Time", "Entity", "Actor", "Old", "New", "Reason"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Report and document commands
# =============================================================================


def cmd_report(args):
    """Service-history report for a period."""
    state = load_fleet(args.fleet_file)
    start, end = report_range(args.period, args.date_from, args.date_to)
    truck_id = resolve_truck_id(state, args.truck) if args.truck else None
    print(f"Period: {start.isoformat()} to {end.isoformat()}")

    if args.detail:
        detail = report_detail(state, start, end, truck_id)
        print(f"Services: {len(detail['rows'])}")
        print()
        if not detail["rows"]:
            print("No services found.")
            return 0
        rows = [
            [
                r["date"],
                r["truck"],
                r["service"],
                format_hours(r["workedHours"]),
                r["user"],
                r["workOrderNumber"],
            ]
            for r in detail["rows"]
        ]
        headers = ["Date", "Truck", "Service", "Hours", "User", "Order"]
        print(tabulate(rows, headers=headers, tablefmt="simple"))
        return 0

    summary = report_summary(state, start, end, truck_id)
    print(f"Services: {summary['totalServices']}")
    print()
    rows = []
    for item in summary["summaryByTruck"]:
        counts = ", ".join(f"{s['maintenanceType']} x{s['count']}" for s in item["services"])
        last = item["lastService"]
        upcoming = item["nextMaintenance"]
        rows.append(
            [
                item["truckNumber"],
                counts or "-",
                f"{last['service']} @ {format_hours(last['workedHours'])} h" if last else "-",
                (
                    f"{upcoming['maintenanceType']} {upcoming['state']} "
                    f"({format_hours(upcoming['remainingHours'])} h)"
                    if upcoming
                    else "-"
                ),
            ]
        )
    headers = ["Truck", "Services", "Last Service", "Next Maintenance"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_add_document(args):
    """Attach a document to a truck."""
    with fleet_transaction(args.fleet_file, dry_run=args.dry_run) as state:
        document = add_truck_document(
            state,
            resolve_truck_id(state, args.truck),
            args.name,
            args.start,
            args.expires,
            resolve_actor_id(state, args.actor),
            args.file_name,
            args.notes,
        )
    status, days = classify_document_expiration(document.expiration_date)
    print(
        f"Added document {document.document_name} "
        f"(expires {document.expiration_date}, {status.value}, {days} days)"
    )
    return 0


def cmd_documents(args):
    """List truck documents by expiration."""
    state = load_fleet(args.fleet_file)
    truck_id = resolve_truck_id(state, args.truck) if args.truck else None
    result = truck_documents(state, truck_id, args.month)
    summary = result["summary"]
    print(
        f"Documents: {summary['total']}  Expired: {summary['expired']}  "
        f"Due soon: {summary['dueSoon']}  Valid: {summary['valid']}"
    )
    print()
    if not result["rows"]:
        print("No documents found.")
        return 0
    rows = [
        [
            r["truckNumber"],
            r["documentName"],
            r["startDate"],
            r["expirationDate"],
            r["expirationStatus"],
            r["daysToExpiration"],
        ]
        for r in result["rows"]
    ]
    headers = ["Truck", "Document", "Start", "Expires", "Status", "Days"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Main
# =============================================================================


COMMANDS = {
    "init": cmd_init,
    "add-actor": cmd_add_actor,
    "add-truck": cmd_add_truck,
    "add-type": cmd_add_type,
    "edit-truck": cmd_edit_truck,
    "edit-type": cmd_edit_type,
    "types": cmd_types,
    "trucks": cmd_trucks,
    "status": cmd_status,
    "enter": cmd_enter,
    "exit": cmd_exit,
    "sessions": cmd_sessions,
    "orders": cmd_orders,
    "start": cmd_start,
    "complete": cmd_complete,
    "revert": cmd_revert,
    "correct": cmd_correct,
    "adjust": cmd_adjust,
    "audit": cmd_audit,
    "report": cmd_report,
    "add-document": cmd_add_document,
    "documents": cmd_documents,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Truck yard and maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -f fleet.yaml init --admin "Yard Admin"
  %(prog)s -f fleet.yaml add-type Greasing --interval 400 --warning 50
  %(prog)s -f fleet.yaml add-truck TRK-001 --brand Freightliner --model Cascadia --year 2020
  %(prog)s -f fleet.yaml enter TRK-001 --odometer 1000 --time 2026-03-02T08:00:00
  %(prog)s -f fleet.yaml exit TRK-001 --time 2026-03-02T18:00:00
  %(prog)s -f fleet.yaml status TRK-001
  %(prog)s -f fleet.yaml complete WO-000001 --hours 400
  %(prog)s -f fleet.yaml revert WO-000001 --reason "logged against wrong truck"
  %(prog)s -f fleet.yaml edit-type Greasing --deactivate
  %(prog)s -f fleet.yaml report --period custom --from 2026-03-01 --to 2026-03-31 --detail
  %(prog)s -f fleet.yaml add-document TRK-001 Insurance --start 2026-01-01 --expires 2026-12-31
""",
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="fleet_file",
        type=Path,
        default=fleet_file(),
        help="Path to fleet YAML file (default: $FLEET_FILE or fleet.yaml)",
    )
    parser.add_argument(
        "--actor",
        type=str,
        help="Name or id of the acting user (default: first admin)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without saving",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a new fleet file")
    init_parser.add_argument("--admin", default="Administrator", help="Admin user name")

    actor_parser = subparsers.add_parser("add-actor", help="Register a user")
    actor_parser.add_argument("name", type=str)
    actor_parser.add_argument(
        "--role", choices=["admin", "operator", "mechanic"], default="operator"
    )

    truck_parser = subparsers.add_parser("add-truck", help="Register a truck")
    truck_parser.add_argument("number", type=str, help="Truck number (e.g., TRK-001)")
    truck_parser.add_argument("--brand", required=True)
    truck_parser.add_argument("--model", required=True)
    truck_parser.add_argument("--year", type=int, required=True)

    type_parser = subparsers.add_parser("add-type", help="Define a maintenance type")
    type_parser.add_argument("name", type=str)
    type_parser.add_argument("--interval", type=float, required=True, help="Interval (hours)")
    type_parser.add_argument(
        "--warning", type=float, default=0, help="Hours before the interval to warn"
    )

    edit_truck_parser = subparsers.add_parser("edit-truck", help="Edit a truck (admin)")
    edit_truck_parser.add_argument("truck", type=str, help="Truck number or id")
    edit_truck_parser.add_argument("--number", type=str, help="New truck number")
    edit_truck_parser.add_argument("--brand", type=str)
    edit_truck_parser.add_argument("--model", type=str)
    edit_truck_parser.add_argument("--year", type=int)
    edit_truck_parser.add_argument(
        "--status", choices=["active", "inactive", "out_of_service"]
    )
    edit_truck_parser.add_argument("--reason", type=str)

    edit_type_parser = subparsers.add_parser(
        "edit-type", help="Edit or deactivate a maintenance type (admin)"
    )
    edit_type_parser.add_argument("type", type=str, help="Maintenance type name or id")
    edit_type_parser.add_argument("--name", type=str, help="New name")
    edit_type_parser.add_argument("--interval", type=float, help="Interval (hours)")
    edit_type_parser.add_argument("--warning", type=float, help="Hours before the interval to warn")
    active_group = edit_type_parser.add_mutually_exclusive_group()
    active_group.add_argument(
        "--activate", dest="active", action="store_const", const=True, default=None
    )
    active_group.add_argument(
        "--deactivate", dest="active", action="store_const", const=False
    )
    edit_type_parser.add_argument("--reason", type=str)

    subparsers.add_parser("types", help="List maintenance types")

    subparsers.add_parser("trucks", help="List trucks with their utilization")


    status_parser = subparsers.add_parser("status", help="Show maintenance health")
    status_parser.add_argument("truck", nargs="?", help="Truck number (default: whole fleet)")

    enter_parser = subparsers.add_parser("enter", help="Record a yard entry")
    enter_parser.add_argument("truck", type=str)
    enter_parser.add_argument("--odometer", type=int, required=True)
    enter_parser.add_argument("--time", type=str, help="ISO timestamp (default: now)")
    enter_parser.add_argument("--notes", type=str)

    exit_parser = subparsers.add_parser("exit", help="Record a yard exit")
    exit_parser.add_argument("truck", type=str)
    exit_parser.add_argument("--time", type=str, help="ISO timestamp (default: now)")
    exit_parser.add_argument("--notes", type=str)

    sessions_parser = subparsers.add_parser("sessions", help="View a truck's yard ledger")
    sessions_parser.add_argument("truck", type=str)

    orders_parser = subparsers.add_parser("orders", help="List work orders")
    orders_parser.add_argument("--truck", type=str)
    orders_parser.add_argument(
        "--status", choices=["pending", "in_progress", "completed", "cancelled"]
    )

    start_parser = subparsers.add_parser("start", help="Start a work order")
    start_parser.add_argument("order", type=str, help="Order number (e.g., WO-000001)")

    complete_parser = subparsers.add_parser("complete", help="Complete a work order")
    complete_parser.add_argument("order", type=str)
    complete_parser.add_argument(
        "--hours", type=float, required=True, help="Worked hours at service"
    )
    complete_parser.add_argument("--notes", type=str)

    revert_parser = subparsers.add_parser("revert", help="Revert a completed work order")
    revert_parser.add_argument("order", type=str)
    revert_parser.add_argument("--reason", type=str, required=True)

    correct_parser = subparsers.add_parser("correct", help="Correct a session's odometer")
    correct_parser.add_argument("session", type=str, help="Session id (or unique prefix)")
    correct_parser.add_argument("--odometer", type=int, required=True)
    correct_parser.add_argument("--reason", type=str, required=True)

    adjust_parser = subparsers.add_parser("adjust", help="Adjust a truck's odometer")
    adjust_parser.add_argument("truck", type=str)
    adjust_parser.add_argument("--odometer", type=int, required=True)
    adjust_parser.add_argument("--reason", type=str, required=True)

    subparsers.add_parser("audit", help="View the audit trail")

    report_parser = subparsers.add_parser("report", help="Service-history report")
    report_parser.add_argument(
        "--period", choices=["week", "month", "custom"], default="week"
    )
    report_parser.add_argument("--from", dest="date_from", type=str, help="Start (custom period)")
    report_parser.add_argument("--to", dest="date_to", type=str, help="End (custom period)")
    report_parser.add_argument("--truck", type=str)
    report_parser.add_argument(
        "--detail", action="store_true", help="List every service instead of per-truck totals"
    )

    document_parser = subparsers.add_parser("add-document", help="Attach a document to a truck")
    document_parser.add_argument("truck", type=str)
    document_parser.add_argument("name", type=str, help="Document name (e.g., Insurance)")
    document_parser.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    document_parser.add_argument("--expires", required=True, help="Expiration date (YYYY-MM-DD)")
    document_parser.add_argument("--file-name", type=str)
    document_parser.add_argument("--notes", type=str)

    documents_parser = subparsers.add_parser("documents", help="List truck documents")
    documents_parser.add_argument("--truck", type=str)
    documents_parser.add_argument("--month", type=str, help="Expiring in month (YYYY-MM)")


    return parser


def main(argv=None):
    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    # Validate fleet file exists
    if args.command != "init" and not args.fleet_file.exists():
        print(f"Error: File not found: {args.fleet_file}")
        return 1

    try:
        return COMMANDS[args.command](args)
    except FleetError as e:
        logger.debug("Command %s rejected: %s", args.command, e)
        print(f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
