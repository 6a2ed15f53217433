"""Flask JSON API for truck yard and maintenance tracking."""

import logging
import math
from pathlib import Path

from flask import Flask, jsonify, request

# Add parent directory to path for fleet imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet import (
    FleetError,
    HealthSnapshot,
    add_truck_document,
    adjust_current_reading,
    classify_document_expiration,
    close_yard_session,
    complete_work_order,
    correct_reading,
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
from fleet.config import fleet_file, log_level, secret_key
from fleet.errors import ErrorCode
from fleet.loader import (
    document_to_dict,
    maintenance_type_to_dict,
    session_to_dict,
    truck_to_dict,
    work_order_to_dict,
)
from fleet.status import TruckStatus, WorkOrderStatus

logging.basicConfig(
    level=log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = secret_key()
app.config["FLEET_FILE"] = fleet_file()

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.DUPLICATE: 409,
    ErrorCode.ALREADY_OPEN: 409,
    ErrorCode.NOT_OPEN: 409,
    ErrorCode.ALREADY_CLOSED: 409,
    ErrorCode.NOT_COMPLETED: 409,
}


def get_fleet_path() -> Path:
    return Path(app.config["FLEET_FILE"])


def get_actor_id() -> str:
    """Acting user, from the X-Actor-Id header."""
    return request.headers.get("X-Actor-Id", "")


def get_payload() -> dict:
    return request.get_json(silent=True) or {}


def parse_number(payload: dict, key: str, cast=float, required: bool = True):
    """
    Read a numeric field from a JSON body.

    NaN and infinity are rejected, and with cast=int so is any fractional
    value (1000.9 is not silently truncated to 1000).
    """
    value = payload.get(key)
    if value is None or value == "":
        if required:
            raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' is required")
        return None
    if isinstance(value, bool):
        raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' must be a number")
    if not math.isfinite(number):
        raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' must be a finite number")
    if cast is int:
        if not number.is_integer():
            raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' must be a whole number")
        return int(number)
    return cast(number)


def parse_flag(payload: dict, key: str):
    """Read an optional boolean field from a JSON body."""
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' must be true or false")


def parse_text(payload: dict, key: str):
    """Read an optional string field from a JSON body."""
    value = payload.get(key)
    if value is None or isinstance(value, str):
        return value
    raise FleetError(ErrorCode.INVALID_INPUT, f"'{key}' must be a string")


def snapshot_to_dict(svc: HealthSnapshot) -> dict:
    return {
        "maintenanceTypeId": svc.maintenance_type.id,
        "maintenanceName": svc.maintenance_type.name,
        "intervalHours": svc.maintenance_type.interval_hours,
        "health": svc.health.name,
        "lastServiceHours": svc.last_service_hours,
        "hoursSinceService": svc.hours_since_service,
        "remainingHours": svc.remaining_hours,
        "overdueHours": svc.overdue_hours,
        "openWorkOrderId": svc.open_work_order_id,
        "openWorkOrderNumber": svc.open_work_order_number,
        "isDue": svc.is_due,
    }


def order_to_dict(order) -> dict:
    d = work_order_to_dict(order)
    d["number"] = order.number
    return d


@app.errorhandler(FleetError)
def handle_fleet_error(error: FleetError):
    logger.info("Rejected %s %s: %s", request.method, request.path, error)
    status = ERROR_STATUS.get(error.code, 400)
    return jsonify({"error": error.code.value, "message": error.message}), status


# =============================================================================
# Read endpoints
# =============================================================================


@app.route("/api/dashboard")
def dashboard():
    """Fleet health distribution, score and open work orders."""
    state = load_fleet(get_fleet_path())
    return jsonify(fleet_summary(state))


@app.route("/api/trucks")
def list_trucks():
    state = load_fleet(get_fleet_path())
    trucks = sorted(state.trucks, key=lambda t: t.truck_number)
    return jsonify(
        [
            {**truck_to_dict(t), "inYard": state.get_open_session(t.id) is not None}
            for t in trucks
        ]
    )


@app.route("/api/trucks/<truck_id>")
def truck_detail(truck_id: str):
    """Truck with health, yard ledger and work orders."""
    state = load_fleet(get_fleet_path())
    truck = state.require_truck(truck_id)
    open_session = state.get_open_session(truck.id)
    return jsonify(
        {
            "truck": truck_to_dict(truck),
            "health": [snapshot_to_dict(s) for s in truck_health(state, truck.id)],
            "openEntry": (
                {"id": open_session.id, "entryAt": open_session.entry_at, "odometer": open_session.odometer}
                if open_session
                else None
            ),
            "sessions": [
                session_to_dict(s) for s in reversed(state.get_sessions_for_truck(truck.id))
            ],
            "workOrders": [order_to_dict(o) for o in state.get_work_orders_for_truck(truck.id)],
        }
    )


@app.route("/api/workorders")
def list_work_orders():
    """Work orders, newest first. Filter with ?status= and ?truckId=."""
    state = load_fleet(get_fleet_path())
    orders = sorted(state.work_orders, key=lambda o: o.serial, reverse=True)
    status_filter = request.args.get("status", "").upper()
    if status_filter:
        try:
            wanted = WorkOrderStatus(status_filter)
        except ValueError:
            raise FleetError(ErrorCode.INVALID_INPUT, f"Unknown status '{status_filter}'")
        orders = [o for o in orders if o.status == wanted]
    truck_id = request.args.get("truckId")
    if truck_id:
        orders = [o for o in orders if o.truck_id == truck_id]
    return jsonify([order_to_dict(o) for o in orders])


# =============================================================================
# Yard endpoints
# =============================================================================


@app.route("/api/yard-entries", methods=["POST"])
def record_yard_movement():
    """Record an ENTRY (with odometer) or EXIT for a truck."""
    payload = get_payload()
    movement = str(payload.get("movementType", "")).upper()
    truck_id = payload.get("truckId", "")
    timestamp = payload.get("timestamp") or now_iso()
    notes = payload.get("notes") or None

    with fleet_transaction(get_fleet_path()) as state:
        if movement == "ENTRY":
            odometer = parse_number(payload, "odometer", int)
            session = open_yard_session(
                state, truck_id, timestamp, odometer, get_actor_id(), notes
            )
            return jsonify({"id": session.id, "entryAt": session.entry_at, "odometer": session.odometer}), 201
        if movement == "EXIT":
            session, generated = close_yard_session(state, truck_id, timestamp, notes)
            return jsonify(
                {
                    "session": session_to_dict(session),
                    "generatedWorkOrders": [order_to_dict(o) for o in generated],
                }
            ), 201
        raise FleetError(ErrorCode.INVALID_INPUT, "movementType must be ENTRY or EXIT")


@app.route("/api/yard-entries/<session_id>/correct", methods=["POST"])
def correct_yard_entry(session_id: str):
    payload = get_payload()
    with fleet_transaction(get_fleet_path()) as state:
        session = correct_reading(
            state,
            session_id,
            parse_number(payload, "odometer", int),
            get_actor_id(),
            payload.get("reason", ""),
        )
        return jsonify(session_to_dict(session))


@app.route("/api/trucks/<truck_id>/odometer", methods=["POST"])
def adjust_odometer(truck_id: str):
    payload = get_payload()
    with fleet_transaction(get_fleet_path()) as state:
        truck = adjust_current_reading(
            state,
            truck_id,
            parse_number(payload, "odometer", int),
            get_actor_id(),
            payload.get("reason", ""),
        )
        return jsonify(truck_to_dict(truck))


# =============================================================================
# Work order endpoints
# =============================================================================


@app.route("/api/workorders/<work_order_id>/start", methods=["POST"])
def start_order(work_order_id: str):
    with fleet_transaction(get_fleet_path()) as state:
        order = start_work_order(state, work_order_id, get_actor_id())
        return jsonify(order_to_dict(order))


@app.route("/api/workorders/<work_order_id>/complete", methods=["POST"])
def complete_order(work_order_id: str):
    payload = get_payload()
    with fleet_transaction(get_fleet_path()) as state:
        order, snapshots = complete_work_order(
            state,
            work_order_id,
            parse_number(payload, "hoursAtService", required=False),
            get_actor_id(),
            payload.get("notes") or None,
        )
        return jsonify(
            {
                "workOrder": order_to_dict(order),
                "health": [snapshot_to_dict(s) for s in snapshots],
            }
        )


@app.route("/api/workorders/<work_order_id>/revert", methods=["POST"])
def revert_order(work_order_id: str):
    payload = get_payload()
    with fleet_transaction(get_fleet_path()) as state:
        order = revert_work_order(
            state, work_order_id, get_actor_id(), payload.get("reason", "")
        )
        return jsonify(order_to_dict(order))


# =============================================================================
# Admin endpoints
# =============================================================================


@app.route("/api/trucks/<truck_id>", methods=["PATCH"])
def edit_truck(truck_id: str):
    """Edit any of truckNumber, brand, model, year and status."""
    payload = get_payload()
    status = payload.get("status")
    if status is not None:
        try:
            status = TruckStatus(str(status).upper())
        except ValueError:
            raise FleetError(ErrorCode.INVALID_INPUT, f"Unknown truck status '{status}'")
    with fleet_transaction(get_fleet_path()) as state:
        truck = update_truck(
            state,
            truck_id,
            get_actor_id(),
            truck_number=parse_text(payload, "truckNumber"),
            brand=parse_text(payload, "brand"),
            model=parse_text(payload, "model"),
            year=parse_number(payload, "year", int, required=False),
            status=status,
            reason=parse_text(payload, "reason"),
        )
        return jsonify(truck_to_dict(truck))


@app.route("/api/maintenance-types")
def list_maintenance_types():
    state = load_fleet(get_fleet_path())
    return jsonify(
        [
            maintenance_type_to_dict(t)
            for t in sorted(state.maintenance_types, key=lambda t: t.interval_hours)
        ]
    )


@app.route("/api/maintenance-types/<maintenance_type_id>", methods=["PATCH"])
def edit_maintenance_type(maintenance_type_id: str):
    """Edit any of name, intervalHours, warningBeforeHours and isActive."""
    payload = get_payload()
    with fleet_transaction(get_fleet_path()) as state:
        maintenance_type = update_maintenance_type(
            state,
            maintenance_type_id,
            get_actor_id(),
            name=parse_text(payload, "name"),
            interval_hours=parse_number(payload, "intervalHours", required=False),
            warning_before_hours=parse_number(payload, "warningBeforeHours", required=False),
            is_active=parse_flag(payload, "isActive"),
            reason=parse_text(payload, "reason"),
        )
        return jsonify(maintenance_type_to_dict(maintenance_type))


# =============================================================================
# Report and document endpoints
# =============================================================================


def report_query():
    """Range and truck filter from ?period=, ?from=, ?to= and ?truckId=."""
    start, end = report_range(
        request.args.get("period"), request.args.get("from"), request.args.get("to")
    )
    return start, end, request.args.get("truckId") or None


@app.route("/api/reports/summary")
def service_report_summary():
    state = load_fleet(get_fleet_path())
    start, end, truck_id = report_query()
    return jsonify(report_summary(state, start, end, truck_id))


@app.route("/api/reports/detail")
def service_report_detail():
    state = load_fleet(get_fleet_path())
    start, end, truck_id = report_query()
    return jsonify(report_detail(state, start, end, truck_id))


@app.route("/api/documents")
def list_documents():
    """Documents by expiration. Filter with ?truckId= and ?month=YYYY-MM."""
    state = load_fleet(get_fleet_path())
    return jsonify(
        truck_documents(
            state, request.args.get("truckId") or None, request.args.get("month") or None
        )
    )


@app.route("/api/documents", methods=["POST"])
def create_document():
    payload = get_payload()
    with fleet_transaction(get_fleet_path()) as state:
        document = add_truck_document(
            state,
            payload.get("truckId", ""),
            parse_text(payload, "documentName"),
            parse_text(payload, "startDate"),
            parse_text(payload, "expirationDate"),
            get_actor_id() or None,
            parse_text(payload, "fileName"),
            parse_text(payload, "notes"),
        )
        status, days = classify_document_expiration(document.expiration_date)
        return jsonify(
            {
                **document_to_dict(document),
                "expirationStatus": status.value,
                "daysToExpiration": days,
            }
        ), 201


if __name__ == "__main__":

    app.run(debug=True)
