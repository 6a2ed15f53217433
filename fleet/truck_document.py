"""TruckDocument class for permits, insurance and other dated paperwork."""

from typing import Optional


class TruckDocument:
    """A document attached to a truck, valid from start_date to expiration_date."""

    def __init__(
        self,
        id: str,
        truck_id: str,
        document_name: str,
        start_date: str,
        expiration_date: str,
        file_name: Optional[str] = None,
        uploaded_by: Optional[str] = None,
        notes: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ):
        self.id = id
        self.truck_id = truck_id
        self.document_name = document_name
        self.start_date = start_date  # YYYY-MM-DD
        self.expiration_date = expiration_date  # YYYY-MM-DD
        self.file_name = file_name
        self.uploaded_by = uploaded_by
        self.notes = notes
        self.created_at = created_at
        self.updated_at = updated_at
