#!/usr/bin/env python3
"""Tests for truck documents and expiration tracking."""

from datetime import date

import pytest

from fleet import (
    DocumentStatus,
    ErrorCode,
    FleetError,
    FleetState,
    Role,
    add_truck_document,
    classify_document_expiration,
    truck_documents,
)
from fleet.audit import AuditAction

TODAY = date(2026, 3, 15)


def make_fleet():
    state = FleetState()
    clerk = state.add_actor("Office Clerk", Role.ADMIN)
    first = state.add_truck("TRK-001", "Freightliner", "Cascadia", 2020)
    second = state.add_truck("TRK-002", "Volvo", "VNL", 2021)
    return state, clerk, first, second


def make_documented_fleet():
    """
    TRK-001: insurance expired 03-10, permit due 03-20.
    TRK-002: registration valid until 04-30.
    """
    state, clerk, first, second = make_fleet()
    add_truck_document(state, first.id, "Insurance", "2025-03-10", "2026-03-10", clerk.id)
    add_truck_document(state, first.id, "Road Permit", "2026-01-01", "2026-03-20", clerk.id)
    add_truck_document(state, second.id, "Registration", "2025-05-01", "2026-04-30")
    return state, clerk, first, second


class TestClassifyDocumentExpiration:
    """Tests for classify_document_expiration."""

    def test_boundaries(self):
        for expires, expected in (
            ("2026-03-14", (DocumentStatus.EXPIRED, -1)),
            ("2026-03-15", (DocumentStatus.DUE_SOON, 0)),
            ("2026-03-22", (DocumentStatus.DUE_SOON, 7)),
            ("2026-03-23", (DocumentStatus.VALID, 8)),
        ):
            assert classify_document_expiration(expires, TODAY) == expected

    def test_invalid_date(self):
        with pytest.raises(FleetError) as exc:
            classify_document_expiration("15/03/2026", TODAY)
        assert exc.value.code == ErrorCode.INVALID_TIME


class TestAddTruckDocument:
    """Tests for add_truck_document."""

    def test_adds_and_audits(self):
        state, clerk, first, _ = make_fleet()
        document = add_truck_document(
            state,
            first.id,
            "  Insurance ",
            "2026-01-01",
            "2026-12-31",
            clerk.id,
            file_name="insurance.pdf",
            notes=" ",
        )
        assert state.documents == [document]
        assert document.document_name == "Insurance"
        assert document.file_name == "insurance.pdf"
        assert document.notes is None
        assert document.uploaded_by == clerk.id

        [entry] = state.audit_log
        assert entry.entity_type == AuditAction.DOCUMENT_UPLOAD
        assert entry.entity_id == document.id
        assert entry.new_value == {
            "truckId": first.id,
            "documentName": "Insurance",
            "expirationDate": "2026-12-31",
        }

    def test_same_day_expiry_allowed(self):
        state, _, first, _ = make_fleet()
        document = add_truck_document(state, first.id, "Day Pass", "2026-03-15", "2026-03-15")
        assert document.uploaded_by is None

    def test_short_name_rejected(self):
        state, _, first, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            add_truck_document(state, first.id, " X ", "2026-01-01", "2026-12-31")
        assert exc.value.code == ErrorCode.INVALID_INPUT
        assert state.documents == []

    def test_invalid_dates_rejected(self):
        state, _, first, _ = make_fleet()
        for start, expires in (("2026-01-01", "2026-13-01"), ("", "2026-12-31")):
            with pytest.raises(FleetError) as exc:
                add_truck_document(state, first.id, "Insurance", start, expires)
            assert exc.value.code == ErrorCode.INVALID_TIME
        assert state.documents == []

    def test_expiry_before_start_rejected(self):
        state, _, first, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            add_truck_document(state, first.id, "Insurance", "2026-12-31", "2026-01-01")
        assert exc.value.code == ErrorCode.INVALID_TIME_RANGE
        assert state.audit_log == []

    def test_unknown_truck(self):
        state, _, _, _ = make_fleet()
        with pytest.raises(FleetError) as exc:
            add_truck_document(state, "missing", "Insurance", "2026-01-01", "2026-12-31")
        assert exc.value.code == ErrorCode.NOT_FOUND


class TestTruckDocuments:
    """Tests for truck_documents."""

    def test_summary_and_rows(self):
        state, _, _, _ = make_documented_fleet()
        listing = truck_documents(state, today=TODAY)

        assert listing["summary"] == {"total": 3, "expired": 1, "dueSoon": 1, "valid": 1}
        assert [r["documentName"] for r in listing["rows"]] == [
            "Insurance",
            "Road Permit",
            "Registration",
        ]
        insurance = listing["rows"][0]
        assert insurance["truckNumber"] == "TRK-001"
        assert insurance["uploadedBy"] == "Office Clerk"
        assert insurance["expirationStatus"] == "EXPIRED"
        assert insurance["daysToExpiration"] == -5
        assert listing["rows"][2]["uploadedBy"] is None

    def test_truck_filter(self):
        state, _, _, second = make_documented_fleet()
        listing = truck_documents(state, truck_id=second.id, today=TODAY)
        assert [r["documentName"] for r in listing["rows"]] == ["Registration"]
        assert listing["summary"]["total"] == 1
        assert len(listing["upcoming"]) == 3

    def test_month_filter(self):
        state, _, _, _ = make_documented_fleet()
        listing = truck_documents(state, month="2026-03", today=TODAY)
        assert [r["documentName"] for r in listing["rows"]] == ["Insurance", "Road Permit"]
        assert listing["summary"] == {"total": 2, "expired": 1, "dueSoon": 1, "valid": 0}

    def test_invalid_month(self):
        state, _, _, _ = make_documented_fleet()
        for month in ("2026-13", "March"):
            with pytest.raises(FleetError) as exc:
                truck_documents(state, month=month, today=TODAY)
            assert exc.value.code == ErrorCode.INVALID_INPUT

    def test_upcoming_is_capped_and_sorted(self):
        state, _, first, _ = make_fleet()
        for day in range(31, 0, -1):
            add_truck_document(state, first.id, f"Permit {day:02d}", "2026-01-01", f"2026-05-{day:02d}")
        upcoming = truck_documents(state, today=TODAY)["upcoming"]
        assert len(upcoming) == 30
        assert upcoming[0]["expirationDate"] == "2026-05-01"
        assert upcoming[-1]["expirationDate"] == "2026-05-30"

    def test_unknown_truck(self):
        state, _, _, _ = make_documented_fleet()
        with pytest.raises(FleetError) as exc:
            truck_documents(state, truck_id="missing")
        assert exc.value.code == ErrorCode.NOT_FOUND

    def test_empty(self):
        state, _, _, _ = make_fleet()
        listing = truck_documents(state, today=TODAY)
        assert listing["summary"]["total"] == 0
        assert listing["rows"] == []
        assert listing["upcoming"] == []
