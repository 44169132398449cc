"""Repository for blood bank donor records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.storage.firestore_repo import FirestoreRecordRepository, StoredRecord


@dataclass(frozen=True)
class DonorEntry:
  """Donor fields as accepted from operators."""

  name: str
  blood_group: str
  contact_number: str
  contact_name: str
  case_type: str

  def to_document(self) -> dict[str, Any]:
    # Field names match what the donor change feed and existing clients read.
    return {"name": self.name, "bloodGroup": self.blood_group, "contactNumber": self.contact_number, "contactName": self.contact_name, "case": self.case_type}


class DonorRepository(FirestoreRecordRepository):
  """Persist donors in the `donors` collection."""

  async def add(self, entry: DonorEntry) -> str:
    return await self._add(entry.to_document())

  async def find_by_contact_number(self, contact_number: str) -> StoredRecord | None:
    matches = await self._where_equal("contactNumber", contact_number, limit=1)
    return matches[0] if matches else None

  async def update(self, donor_id: str, entry: DonorEntry) -> None:
    await self._update(donor_id, entry.to_document())
