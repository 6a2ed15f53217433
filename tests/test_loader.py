#!/usr/bin/env python3
"""Tests for YAML loading and saving of fleet snapshots."""

import pytest
import yaml

from fleet import (
    FleetError,
    Role,
    WorkOrderStatus,
    add_truck_document,
    close_yard_session,
    create_fleet,
    fleet_transaction,
    load_fleet,
    open_yard_session,
    save_fleet,
)
from fleet.loader import parse_fleet

# =============================================================================
# create_fleet / load_fleet tests
# =============================================================================


class TestCreateFleet:
    """Tests for create_fleet."""

    def test_creates_file_with_admin(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        state = create_fleet(path, "Yard Admin")
        assert path.exists()
        [admin] = state.actors
        assert admin.name == "Yard Admin"
        assert admin.role == Role.ADMIN

        loaded = load_fleet(path)
        assert loaded.actors[0].id == admin.id
        assert loaded.trucks == []

    def test_writes_camel_case_keys(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        create_fleet(path)
        data = yaml.safe_load(path.read_text())
        assert list(data) == [
            "meta",
            "actors",
            "maintenanceTypes",
            "trucks",
            "checkpoints",
            "openSessions",
            "sessions",
            "workOrders",
            "serviceRecords",
            "documents",
            "auditLog",
        ]
        assert data["meta"] == {"workOrderSerial": 0, "sequence": 0}


class TestLoadFleet:
    """Tests for load_fleet and parse_fleet."""

    def test_loads_handwritten_file(self, tmp_path):
        """Unquoted timestamps stay ISO strings."""
        yaml_content = """
meta:
  workOrderSerial: 3
  sequence: 7
actors:
  - id: a1
    name: Yard Admin
    role: ADMIN
maintenanceTypes:
  - id: m1
    name: Greasing
    intervalHours: 400
    warningBeforeHours: 50
trucks:
  - id: t1
    truckNumber: TRK-001
    brand: Freightliner
    model: Cascadia
    year: 2020
    currentOdometer: 1000
    currentWorkedHours: 10
sessions:
  - id: s1
    truckId: t1
    entryAt: 2026-03-02T08:00:00
    exitAt: 2026-03-02T18:00:00
    odometer: 1000
    distanceDelta: 1000
    workedHours: 10
    sequence: 7
"""
        path = tmp_path / "fleet.yaml"
        path.write_text(yaml_content)
        state = load_fleet(path)

        assert state.work_order_serial == 3
        assert state.sequence == 7
        [truck] = state.trucks
        assert truck.current_odometer == 1000
        [session] = state.sessions
        assert isinstance(session.entry_at, str)
        assert session.entry_at.startswith("2026-03-02T08:00:00")
        assert state.maintenance_types[0].warning_before_hours == 50
        assert state.checkpoints == {}

    def test_empty_document(self):
        state = parse_fleet(None)
        assert state.trucks == []
        assert state.work_order_serial == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_fleet(tmp_path / "missing.yaml")


# =============================================================================
# save_fleet round trip
# =============================================================================


class TestSaveFleet:
    """Tests for save_fleet."""

    def test_preserves_ledger_and_orders(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        state = create_fleet(path)
        admin = state.actors[0]
        greasing = state.add_maintenance_type("Greasing", 400, 50)
        truck = state.add_truck("TRK-001", "Freightliner", "Cascadia", 2020)
        open_yard_session(state, truck.id, "2026-03-02T08:00:00", 1000, admin.id)
        close_yard_session(state, truck.id, "2026-03-19T00:00:00")
        open_yard_session(state, truck.id, "2026-03-20T08:00:00", 1500, admin.id, "in for check")
        save_fleet(path, state)

        loaded = load_fleet(path)
        loaded_truck = loaded.get_truck(truck.id)
        assert loaded_truck.current_worked_hours == 400
        assert loaded_truck.current_odometer == 1000
        assert loaded.get_open_session(truck.id).notes == "in for check"
        [order] = loaded.work_orders
        assert order.status == WorkOrderStatus.PENDING
        assert order.auto_generated is True
        assert order.number == "WO-000001"
        assert loaded.work_order_serial == 1
        assert loaded.checkpoints[(truck.id, greasing.id)].last_service_hours == 0

    def test_preserves_documents(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        state = create_fleet(path)
        admin = state.actors[0]
        truck = state.add_truck("TRK-001", "Freightliner", "Cascadia", 2020)
        document = add_truck_document(
            state, truck.id, "Insurance", "2026-01-01", "2026-12-31", admin.id, "insurance.pdf"
        )
        save_fleet(path, state)

        [loaded] = load_fleet(path).documents
        assert loaded.id == document.id
        assert loaded.truck_id == truck.id
        assert loaded.document_name == "Insurance"
        assert loaded.start_date == "2026-01-01"
        assert loaded.expiration_date == "2026-12-31"
        assert loaded.file_name == "insurance.pdf"
        assert loaded.uploaded_by == admin.id
        assert loaded.notes is None

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        create_fleet(path)
        save_fleet(path, load_fleet(path))
        assert [p.name for p in tmp_path.iterdir()] == ["fleet.yaml"]


# =============================================================================
# fleet_transaction tests
# =============================================================================


class TestFleetTransaction:
    """Tests for fleet_transaction."""

    def test_saves_on_success(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        create_fleet(path)
        with fleet_transaction(path) as state:
            state.add_truck("TRK-001", "Volvo", "VNL", 2021)
        assert len(load_fleet(path).trucks) == 1

    def test_failed_operation_writes_nothing(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        create_fleet(path)
        before = path.read_text()
        with pytest.raises(FleetError):
            with fleet_transaction(path) as state:
                state.add_truck("TRK-001", "Volvo", "VNL", 2021)
                state.add_truck("TRK-001", "Volvo", "VNL", 2021)
        assert path.read_text() == before

    def test_dry_run_writes_nothing(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        create_fleet(path)
        before = path.read_text()
        with fleet_transaction(path, dry_run=True) as state:
            state.add_truck("TRK-001", "Volvo", "VNL", 2021)
        assert path.read_text() == before
