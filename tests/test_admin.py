#!/usr/bin/env python3
"""Tests for admin edits of trucks and maintenance types."""

from datetime import datetime, timedelta

import pytest

from fleet import (
    ErrorCode,
    FleetError,
    FleetState,
    Health,
    Role,
    TruckStatus,
    WorkOrderStatus,
    close_yard_session,
    complete_work_order,
    deactivate_maintenance_type,
    evaluate_vehicle,
    open_yard_session,
    reconcile_vehicle,
    truck_health,
    update_maintenance_type,
    update_truck,
)
from fleet.audit import AuditAction

START = datetime(2026, 3, 2, 8, 0)


def make_fleet():
    """Admin, mechanic, one truck; greasing every 400 h and oil every 1000 h."""
    state = FleetState()
    admin = state.add_actor("Yard Admin", Role.ADMIN)
    mechanic = state.add_actor("Mechanic", Role.MECHANIC)
    greasing = state.add_maintenance_type("Greasing", 400, 50)
    oil = state.add_maintenance_type("Oil Change", 1000, 100)
    truck = state.add_truck("TRK-001", "Freightliner", "Cascadia", 2020)
    return state, admin, mechanic, truck, greasing, oil


def work(state, truck, day, hours, odometer):
    entry = START + timedelta(days=day)
    open_yard_session(state, truck.id, entry.isoformat(), odometer, None)
    return close_yard_session(state, truck.id, (entry + timedelta(hours=hours)).isoformat())


class TestUpdateTruck:
    """Tests for update_truck."""

    def test_edits_fields(self):
        state, admin, _, truck, _, _ = make_fleet()
        update_truck(
            state,
            truck.id,
            admin.id,
            truck_number=" trk-100 ",
            brand="Volvo",
            model="VNL",
            year=2022,
            status=TruckStatus.OUT_OF_SERVICE,
        )
        assert truck.truck_number == "TRK-100"
        assert truck.name == "TRK-100 (2022 Volvo VNL)"
        assert truck.status == TruckStatus.OUT_OF_SERVICE
        assert state.get_truck_by_number("TRK-100") is truck

    def test_unchanged_fields_kept(self):
        state, admin, _, truck, _, _ = make_fleet()
        update_truck(state, truck.id, admin.id, model="Cascadia Evolution")
        assert truck.truck_number == "TRK-001"
        assert truck.brand == "Freightliner"
        assert truck.year == 2020
        assert truck.model == "Cascadia Evolution"

    def test_records_changed_fields_only(self):
        state, admin, _, truck, _, _ = make_fleet()
        update_truck(state, truck.id, admin.id, brand="Volvo", year=2020)
        [entry] = state.audit_log
        assert entry.entity_type == AuditAction.TRUCK_UPDATE
        assert entry.old_value == {"brand": "Freightliner"}
        assert entry.new_value == {"brand": "Volvo"}
        assert entry.reason == "Administrative edit"

    def test_no_change_no_audit(self):
        state, admin, _, truck, _, _ = make_fleet()
        update_truck(state, truck.id, admin.id, brand="Freightliner")
        assert state.audit_log == []

    def test_duplicate_number_rejected(self):
        state, admin, _, truck, _, _ = make_fleet()
        state.add_truck("TRK-002", "Volvo", "VNL", 2021)
        with pytest.raises(FleetError) as exc:
            update_truck(state, truck.id, admin.id, truck_number="trk-002", brand="Volvo")
        assert exc.value.code == ErrorCode.DUPLICATE
        assert truck.truck_number == "TRK-001"
        assert truck.brand == "Freightliner"

    def test_keeping_own_number_allowed(self):
        state, admin, _, truck, _, _ = make_fleet()
        update_truck(state, truck.id, admin.id, truck_number="TRK-001", year=2021)
        assert truck.year == 2021

    def test_invalid_values_rejected(self):
        state, admin, _, truck, _, _ = make_fleet()
        for changes in ({"truck_number": "  "}, {"year": 0}, {"year": 2020.5}):
            with pytest.raises(FleetError) as exc:
                update_truck(state, truck.id, admin.id, **changes)
            assert exc.value.code == ErrorCode.INVALID_INPUT

    def test_non_admin_forbidden(self):
        state, _, mechanic, truck, _, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            update_truck(state, truck.id, mechanic.id, brand="Volvo")
        assert exc.value.code == ErrorCode.FORBIDDEN
        assert truck.brand == "Freightliner"

    def test_unknown_truck(self):
        state, admin, _, _, _, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            update_truck(state, "missing", admin.id, brand="Volvo")
        assert exc.value.code == ErrorCode.NOT_FOUND


class TestUpdateMaintenanceType:
    """Tests for update_maintenance_type."""

    def test_edits_fields(self):
        state, admin, _, _, greasing, _ = make_fleet()
        update_maintenance_type(
            state, greasing.id, admin.id, name="Chassis Greasing", interval_hours=300, warning_before_hours=30
        )
        assert greasing.name == "Chassis Greasing"
        assert greasing.interval_hours == 300
        assert greasing.warning_before_hours == 30
        [entry] = state.audit_log
        assert entry.entity_type == AuditAction.MAINTENANCE_TYPE_UPDATE
        assert entry.old_value == {"name": "Greasing", "intervalHours": 400, "warningBeforeHours": 50}

    def test_shorter_interval_raises_order(self):
        state, admin, _, truck, greasing, _ = make_fleet()
        work(state, truck, 0, 320, 1000)
        assert state.work_orders == []

        update_maintenance_type(state, greasing.id, admin.id, interval_hours=300)
        [order] = state.work_orders
        assert order.maintenance_type_id == greasing.id
        assert order.status == WorkOrderStatus.PENDING
        assert order.due_at_hours == 300

    def test_longer_interval_retires_pending_order(self):
        state, admin, _, truck, greasing, _ = make_fleet()
        _, [order] = work(state, truck, 0, 400, 1000)
        update_maintenance_type(state, greasing.id, admin.id, interval_hours=500)
        assert order.status == WorkOrderStatus.CANCELLED
        [greasing_health, _] = truck_health(state, truck.id)
        assert greasing_health.health == Health.OK

    def test_invalid_values_rejected(self):
        state, admin, _, _, greasing, _ = make_fleet()
        for changes in (
            {"interval_hours": 0},
            {"interval_hours": float("nan")},
            {"warning_before_hours": -1},
            {"warning_before_hours": float("inf")},
        ):
            with pytest.raises(FleetError) as exc:
                update_maintenance_type(state, greasing.id, admin.id, **changes)
            assert exc.value.code == ErrorCode.INVALID_INTERVAL
        with pytest.raises(FleetError) as exc:
            update_maintenance_type(state, greasing.id, admin.id, name=" ")
        assert exc.value.code == ErrorCode.INVALID_INPUT
        assert greasing.interval_hours == 400
        assert greasing.warning_before_hours == 50
        assert greasing.name == "Greasing"

    def test_non_admin_forbidden(self):
        state, _, mechanic, _, greasing, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            update_maintenance_type(state, greasing.id, mechanic.id, interval_hours=100)
        assert exc.value.code == ErrorCode.FORBIDDEN
        assert greasing.interval_hours == 400

    def test_short_reason_rejected(self):
        state, admin, _, _, greasing, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            update_maintenance_type(state, greasing.id, admin.id, interval_hours=300, reason="typo")
        assert exc.value.code == ErrorCode.REASON_TOO_SHORT

    def test_unknown_type(self):
        state, admin, _, _, _, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            update_maintenance_type(state, "missing", admin.id, interval_hours=300)
        assert exc.value.code == ErrorCode.NOT_FOUND


class TestDeactivateMaintenanceType:
    """Deactivation takes a type out of evaluation but keeps its history."""

    def make_serviced_fleet(self):
        """Greasing serviced once at 400 h, truck now at 800 h with a new pending order."""
        state, admin, mechanic, truck, greasing, oil = make_fleet()
        _, [first] = work(state, truck, 0, 400, 1000)
        complete_work_order(state, first.id, 400, mechanic.id)
        _, [second] = work(state, truck, 20, 400, 2000)
        return state, admin, truck, greasing, oil, first, second

    def test_excluded_from_evaluation_history_kept(self):
        state, admin, truck, greasing, oil, first, second = self.make_serviced_fleet()

        deactivate_maintenance_type(state, greasing.id, admin.id, "greasing contracted out")

        assert not greasing.is_active
        assert second.status == WorkOrderStatus.CANCELLED
        assert first.status == WorkOrderStatus.COMPLETED
        [record] = state.service_records
        assert record.maintenance_type_id == greasing.id
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 400

        snapshots = evaluate_vehicle(state, truck.id, 2000)
        assert [s.maintenance_type for s in snapshots] == [oil]
        assert [s.maintenance_type for s in truck_health(state, truck.id)] == [oil]
        greasing_orders = [o for o in state.work_orders if o.maintenance_type_id == greasing.id]
        assert [o.status for o in greasing_orders] == [
            WorkOrderStatus.COMPLETED,
            WorkOrderStatus.CANCELLED,
        ]

    def test_reconcile_leaves_inactive_checkpoint(self):
        state, admin, truck, greasing, _, _, _ = self.make_serviced_fleet()
        deactivate_maintenance_type(state, greasing.id, admin.id)
        state.service_records = []
        reconcile_vehicle(state, truck.id)
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 400

    def test_in_progress_order_kept(self):
        state, admin, truck, greasing, _, _, second = self.make_serviced_fleet()
        second.status = WorkOrderStatus.IN_PROGRESS
        deactivate_maintenance_type(state, greasing.id, admin.id)
        assert second.status == WorkOrderStatus.IN_PROGRESS

    def test_reactivation_rederives_checkpoint_and_evaluates(self):
        state, admin, truck, greasing, _, _, _ = self.make_serviced_fleet()
        deactivate_maintenance_type(state, greasing.id, admin.id)
        state.checkpoints[(truck.id, greasing.id)].last_service_hours = 0

        update_maintenance_type(state, greasing.id, admin.id, is_active=True)

        assert greasing.is_active
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 400
        reopened = state.get_open_work_order(truck.id, greasing.id)
        assert reopened is not None
        assert reopened.due_at_hours == 800
