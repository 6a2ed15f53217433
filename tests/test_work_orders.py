#!/usr/bin/env python3
"""Tests for the work order lifecycle: evaluate, start, complete, revert."""

from datetime import datetime, timedelta

import pytest

from fleet import (
    ErrorCode,
    FleetError,
    FleetState,
    Health,
    Role,
    WorkOrderStatus,
    close_yard_session,
    complete_work_order,
    evaluate_vehicle,
    open_yard_session,
    revert_work_order,
    start_work_order,
    truck_health,
)
from fleet.audit import AuditAction

START = datetime(2026, 3, 2, 8, 0)


def make_fleet():
    state = FleetState()
    admin = state.add_actor("Yard Admin", Role.ADMIN)
    mechanic = state.add_actor("Mechanic", Role.MECHANIC)
    greasing = state.add_maintenance_type("Greasing", 400, 50)
    truck = state.add_truck("TRK-001", "Freightliner", "Cascadia", 2020)
    return state, admin, mechanic, truck, greasing


def work(state, truck, day, hours, odometer):
    entry = START + timedelta(days=day)
    open_yard_session(state, truck.id, entry.isoformat(), odometer, None)
    return close_yard_session(state, truck.id, (entry + timedelta(hours=hours)).isoformat())


def make_due_fleet():
    """Truck at exactly 400 h with one pending greasing order."""
    state, admin, mechanic, truck, greasing = make_fleet()
    _, [order] = work(state, truck, 0, 400, 1000)
    return state, admin, mechanic, truck, greasing, order


class TestEvaluateVehicle:
    """Tests for evaluate_vehicle."""

    def test_not_due_creates_nothing(self):
        state, _, _, truck, _ = make_fleet()
        [snapshot] = evaluate_vehicle(state, truck.id, 100)
        assert snapshot.health == Health.OK
        assert snapshot.remaining_hours == 300
        assert state.work_orders == []

    def test_is_idempotent(self):
        state, _, _, truck, _ = make_fleet()
        first = evaluate_vehicle(state, truck.id, 420)
        second = evaluate_vehicle(state, truck.id, 420)
        assert len(state.work_orders) == 1
        assert first[0].work_order_created
        assert not second[0].work_order_created
        assert first[0].open_work_order_id == second[0].open_work_order_id

    def test_due_at_hours_from_checkpoint(self):
        state, _, _, truck, greasing = make_fleet()
        state.checkpoints[(truck.id, greasing.id)].last_service_hours = 380
        evaluate_vehicle(state, truck.id, 780)
        [order] = state.work_orders
        assert order.due_at_hours == 780

    def test_creates_missing_checkpoint(self):
        state, _, _, truck, _ = make_fleet()
        washing = state.add_maintenance_type("Washing", 100)
        assert (truck.id, washing.id) not in state.checkpoints
        evaluate_vehicle(state, truck.id, 0)
        assert state.checkpoints[(truck.id, washing.id)].last_service_hours == 0

    def test_prune_cancels_stale_auto_orders(self):
        state, _, _, truck, _ = make_fleet()
        evaluate_vehicle(state, truck.id, 400)
        [order] = state.work_orders
        evaluate_vehicle(state, truck.id, 100, prune_not_due=True)
        assert order.status == WorkOrderStatus.CANCELLED

    def test_without_prune_keeps_orders(self):
        state, _, _, truck, _ = make_fleet()
        evaluate_vehicle(state, truck.id, 400)
        evaluate_vehicle(state, truck.id, 100)
        assert state.work_orders[0].status == WorkOrderStatus.PENDING

    def test_unknown_truck(self):
        state, _, _, _, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            evaluate_vehicle(state, "missing", 0)
        assert exc.value.code == ErrorCode.NOT_FOUND


class TestStartWorkOrder:
    """Tests for start_work_order."""

    def test_starts_and_assigns(self):
        state, _, mechanic, _, _, order = make_due_fleet()
        start_work_order(state, order.id, mechanic.id)
        assert order.status == WorkOrderStatus.IN_PROGRESS
        assert order.assigned_to == mechanic.id

    def test_keeps_existing_assignee(self):
        state, admin, mechanic, _, _, order = make_due_fleet()
        start_work_order(state, order.id, mechanic.id)
        start_work_order(state, order.id, admin.id)
        assert order.assigned_to == mechanic.id

    def test_closed_order_rejected(self):
        state, _, mechanic, _, _, order = make_due_fleet()
        complete_work_order(state, order.id, 400, mechanic.id)
        with pytest.raises(FleetError) as exc:
            start_work_order(state, order.id, mechanic.id)
        assert exc.value.code == ErrorCode.ALREADY_CLOSED

    def test_unknown_order(self):
        state, _, mechanic, _, _, _ = make_due_fleet()
        with pytest.raises(FleetError) as exc:
            start_work_order(state, "missing", mechanic.id)
        assert exc.value.code == ErrorCode.NOT_FOUND


class TestCompleteWorkOrder:
    """Tests for complete_work_order."""

    def test_completion_advances_checkpoint(self):
        state, _, mechanic, truck, greasing, order = make_due_fleet()
        completed, snapshots = complete_work_order(state, order.id, 400, mechanic.id, "greased")

        assert completed.status == WorkOrderStatus.COMPLETED
        assert completed.completed_at
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 400
        assert snapshots[0].health == Health.OK
        [record] = state.service_records
        assert record.work_order_id == order.id
        assert record.hours_at_service == 400
        assert record.odometer_at_service == 1000
        assert record.notes == "greased"

    def test_hours_above_current_rejected(self):
        state, _, mechanic, truck, greasing, order = make_due_fleet()
        with pytest.raises(FleetError) as exc:
            complete_work_order(state, order.id, 400.5, mechanic.id)
        assert exc.value.code == ErrorCode.OUT_OF_RANGE
        assert order.status == WorkOrderStatus.PENDING
        assert state.service_records == []
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 0

    def test_hours_below_last_service_rejected(self):
        state, _, mechanic, truck, greasing, order = make_due_fleet()
        state.checkpoints[(truck.id, greasing.id)].last_service_hours = 100
        with pytest.raises(FleetError) as exc:
            complete_work_order(state, order.id, 50, mechanic.id)
        assert exc.value.code == ErrorCode.OUT_OF_RANGE

    def test_missing_or_negative_hours_rejected(self):
        state, _, mechanic, _, _, order = make_due_fleet()
        for hours in (None, -1):
            with pytest.raises(FleetError) as exc:
                complete_work_order(state, order.id, hours, mechanic.id)
            assert exc.value.code == ErrorCode.OUT_OF_RANGE

    def test_non_finite_or_non_numeric_hours_rejected(self):
        """NaN, infinity and non-numbers never reach the service history."""
        state, _, mechanic, truck, greasing, order = make_due_fleet()
        for hours in (float("nan"), float("inf"), float("-inf"), "400", True):
            with pytest.raises(FleetError) as exc:
                complete_work_order(state, order.id, hours, mechanic.id)
            assert exc.value.code == ErrorCode.OUT_OF_RANGE
        assert order.status == WorkOrderStatus.PENDING
        assert state.service_records == []
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 0

    def test_already_completed_rejected(self):
        state, _, mechanic, _, _, order = make_due_fleet()
        complete_work_order(state, order.id, 400, mechanic.id)
        with pytest.raises(FleetError) as exc:
            complete_work_order(state, order.id, 400, mechanic.id)
        assert exc.value.code == ErrorCode.ALREADY_CLOSED
        assert len(state.service_records) == 1

    def test_early_completion_leaves_order_due_again(self):
        """Servicing at 0 h when the truck is at 400 h leaves it due."""
        state, _, mechanic, _, _, order = make_due_fleet()
        _, [snapshot] = complete_work_order(state, order.id, 0, mechanic.id)
        assert snapshot.health == Health.DUE
        assert snapshot.work_order_created
        assert snapshot.open_work_order_id != order.id


class TestRevertWorkOrder:
    """Tests for revert_work_order."""

    def test_complete_then_revert_restores_state(self):
        state, admin, mechanic, truck, greasing, order = make_due_fleet()
        complete_work_order(state, order.id, 400, mechanic.id)

        reverted = revert_work_order(state, order.id, admin.id, "reverted for audit")

        assert reverted.status == WorkOrderStatus.PENDING
        assert reverted.completed_at is None
        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 0
        assert state.service_records == []
        [health] = truck_health(state, truck.id)
        assert health.health == Health.DUE
        assert health.open_work_order_id == order.id
        assert len(state.work_orders) == 1

        [entry] = state.audit_log
        assert entry.entity_type == AuditAction.WORK_ORDER_REVERT
        assert entry.entity_id == order.id
        assert entry.reason == "reverted for audit"
        assert entry.old_value["status"] == "COMPLETED"
        assert entry.new_value["status"] == "PENDING"

    def test_checkpoint_falls_back_to_previous_service(self):
        state, admin, mechanic, truck, greasing, first = make_due_fleet()
        complete_work_order(state, first.id, 400, mechanic.id)
        _, [second] = work(state, truck, 30, 400, 2000)
        complete_work_order(state, second.id, 800, mechanic.id)

        revert_work_order(state, second.id, admin.id, "logged twice by mistake")

        assert state.checkpoints[(truck.id, greasing.id)].last_service_hours == 400
        assert second.status == WorkOrderStatus.PENDING

    def test_cancels_newer_pending_auto_order(self):
        state, admin, mechanic, truck, _, first = make_due_fleet()
        complete_work_order(state, first.id, 400, mechanic.id)
        _, [second] = work(state, truck, 30, 400, 2000)

        revert_work_order(state, first.id, admin.id, "service never happened")

        assert second.status == WorkOrderStatus.CANCELLED
        assert first.status == WorkOrderStatus.PENDING
        assert [o for o in state.work_orders if o.is_open] == [first]

    def test_in_progress_order_blocks_revert(self):
        state, admin, mechanic, truck, _, first = make_due_fleet()
        complete_work_order(state, first.id, 400, mechanic.id)
        _, [second] = work(state, truck, 30, 400, 2000)
        start_work_order(state, second.id, mechanic.id)

        with pytest.raises(FleetError) as exc:
            revert_work_order(state, first.id, admin.id, "service never happened")
        assert exc.value.code == ErrorCode.ALREADY_OPEN
        assert first.status == WorkOrderStatus.COMPLETED
        assert len(state.service_records) == 1

    def test_non_admin_forbidden(self):
        state, _, mechanic, _, _, order = make_due_fleet()
        complete_work_order(state, order.id, 400, mechanic.id)
        with pytest.raises(FleetError) as exc:
            revert_work_order(state, order.id, mechanic.id, "reverted for audit")
        assert exc.value.code == ErrorCode.FORBIDDEN
        assert order.status == WorkOrderStatus.COMPLETED

    def test_forbidden_checked_before_reason(self):
        state, _, mechanic, _, _, order = make_due_fleet()
        with pytest.raises(FleetError) as exc:
            revert_work_order(state, order.id, mechanic.id, "x")
        assert exc.value.code == ErrorCode.FORBIDDEN

    def test_short_reason_rejected(self):
        state, admin, mechanic, _, _, order = make_due_fleet()
        complete_work_order(state, order.id, 400, mechanic.id)
        with pytest.raises(FleetError) as exc:
            revert_work_order(state, order.id, admin.id, "  oops   ")
        assert exc.value.code == ErrorCode.REASON_TOO_SHORT
        assert state.audit_log == []

    def test_only_completed_orders(self):
        state, admin, _, _, _, order = make_due_fleet()
        with pytest.raises(FleetError) as exc:
            revert_work_order(state, order.id, admin.id, "reverted for audit")
        assert exc.value.code == ErrorCode.NOT_COMPLETED
