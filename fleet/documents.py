"""
Truck documents and their expiration tracking.

Documents carry calendar dates only. A document is EXPIRED once its
expiration day has passed, DUE_SOON within DOCUMENT_WARNING_DAYS of it, and
VALID otherwise.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .audit import AuditAction
from .calculations import now_iso
from .config import DOCUMENT_WARNING_DAYS, UPCOMING_DOCUMENTS_LIMIT
from .errors import ErrorCode, FleetError
from .fleet_state import new_id
from .status import DocumentStatus
from .truck_document import TruckDocument

if TYPE_CHECKING:
    from .fleet_state import FleetState

logger = logging.getLogger(__name__)

MIN_DOCUMENT_NAME_LENGTH = 2


def parse_document_date(value: Optional[str], field: str = "date") -> date:
    """Parse a YYYY-MM-DD calendar date, raising INVALID_TIME otherwise."""
    try:
        return date.fromisoformat((value or "").strip())
    except ValueError:
        raise FleetError(
            ErrorCode.INVALID_TIME, f"Invalid {field}: {value!r} (expected YYYY-MM-DD)"
        )


def parse_month(value: str) -> Tuple[int, int]:
    """Parse a YYYY-MM month key into (year, month)."""
    try:
        year, month = (int(part) for part in value.strip().split("-"))
    except ValueError:
        raise FleetError(ErrorCode.INVALID_INPUT, f"Invalid month: {value!r} (expected YYYY-MM)")
    if not 1 <= month <= 12:
        raise FleetError(ErrorCode.INVALID_INPUT, f"Invalid month: {value!r} (expected YYYY-MM)")
    return year, month


def classify_document_expiration(
    expiration_date: str, today: Optional[date] = None
) -> Tuple[DocumentStatus, int]:
    """Return the expiration status and the whole days left until expiry."""
    today = today or date.today()
    days = (parse_document_date(expiration_date, "expiration date") - today).days
    if days < 0:
        return DocumentStatus.EXPIRED, days
    if days <= DOCUMENT_WARNING_DAYS:
        return DocumentStatus.DUE_SOON, days
    return DocumentStatus.VALID, days


def add_truck_document(
    state: "FleetState",
    truck_id: str,
    document_name: str,
    start_date: str,
    expiration_date: str,
    uploaded_by: Optional[str] = None,
    file_name: Optional[str] = None,
    notes: Optional[str] = None,
) -> TruckDocument:
    """Attach a dated document to a truck."""
    truck = state.require_truck(truck_id)
    name = (document_name or "").strip()
    if len(name) < MIN_DOCUMENT_NAME_LENGTH:
        raise FleetError(
            ErrorCode.INVALID_INPUT,
            f"Document name must be at least {MIN_DOCUMENT_NAME_LENGTH} characters",
        )
    starts = parse_document_date(start_date, "start date")
    expires = parse_document_date(expiration_date, "expiration date")
    if expires < starts:
        raise FleetError(
            ErrorCode.INVALID_TIME_RANGE,
            "Expiration date cannot be before the start date",
        )

    now = now_iso()
    document = TruckDocument(
        id=new_id(),
        truck_id=truck.id,
        document_name=name,
        start_date=starts.isoformat(),
        expiration_date=expires.isoformat(),
        file_name=(file_name or "").strip() or None,
        uploaded_by=uploaded_by,
        notes=(notes or "").strip() or None,
        created_at=now,
        updated_at=now,
    )
    state.documents.append(document)
    state.record_audit(
        AuditAction.DOCUMENT_UPLOAD,
        document.id,
        uploaded_by or "",
        "Document uploaded",
        {},
        {
            "truckId": truck.id,
            "documentName": name,
            "expirationDate": document.expiration_date,
        },
    )
    logger.info(
        "Added document '%s' to truck %s (expires %s)",
        name,
        truck.truck_number,
        document.expiration_date,
    )
    return document


def _expiry_key(document: TruckDocument) -> Tuple[str, str]:
    return document.expiration_date, document.document_name


def _document_row(
    state: "FleetState", document: TruckDocument, today: date
) -> Dict[str, Any]:
    status, days = classify_document_expiration(document.expiration_date, today)
    truck = state.get_truck(document.truck_id)
    uploader = state.get_actor(document.uploaded_by) if document.uploaded_by else None
    return {
        "id": document.id,
        "truckId": document.truck_id,
        "truckNumber": truck.truck_number if truck else "N/A",
        "documentName": document.document_name,
        "startDate": document.start_date,
        "expirationDate": document.expiration_date,
        "fileName": document.file_name,
        "uploadedBy": uploader.name if uploader else None,
        "notes": document.notes,
        "expirationStatus": status.value,
        "daysToExpiration": days,
    }


def truck_documents(
    state: "FleetState",
    truck_id: Optional[str] = None,
    month: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Documents with their expiration status, soonest expiry first.

    `truck_id` and `month` (YYYY-MM, matched against the expiration date)
    narrow the rows and the summary counts. The upcoming list always covers
    the whole fleet.
    """
    today = today or date.today()
    if truck_id:
        state.require_truck(truck_id)
    wanted_month = parse_month(month) if month else None

    selected: List[TruckDocument] = []
    for document in state.documents:
        if truck_id and document.truck_id != truck_id:
            continue
        if wanted_month:
            expires = parse_document_date(document.expiration_date, "expiration date")
            if (expires.year, expires.month) != wanted_month:
                continue
        selected.append(document)

    rows = [_document_row(state, d, today) for d in sorted(selected, key=_expiry_key)]
    upcoming = [
        _document_row(state, d, today)
        for d in sorted(state.documents, key=_expiry_key)[:UPCOMING_DOCUMENTS_LIMIT]
    ]

    def count(status: DocumentStatus) -> int:
        return sum(1 for row in rows if row["expirationStatus"] == status.value)

    return {
        "summary": {
            "total": len(rows),
            "expired": count(DocumentStatus.EXPIRED),
            "dueSoon": count(DocumentStatus.DUE_SOON),
            "valid": count(DocumentStatus.VALID),
        },
        "rows": rows,
        "upcoming": upcoming,
    }
