"""Blood bank donor record management."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import get_donor_repo
from app.storage.donors_repo import DonorEntry, DonorRepository
from app.storage.firestore_repo import RecordNotFoundError, RecordStoreError

logger = logging.getLogger(__name__)

router = APIRouter()


class DonorRequest(BaseModel):
  name: str = Field(min_length=1)
  blood_group: str = Field(min_length=1, alias="bloodGroup")
  contact_number: str = Field(min_length=1, alias="contactNumber")
  contact_name: str = Field(min_length=1, alias="contactName")
  case_type: str = Field(min_length=1, alias="caseType")
  model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, coerce_numbers_to_str=True)

  def to_entry(self) -> DonorEntry:
    return DonorEntry(name=self.name, blood_group=self.blood_group, contact_number=self.contact_number, contact_name=self.contact_name, case_type=self.case_type)


@router.post("/donors", status_code=status.HTTP_201_CREATED)
async def add_donor(payload: DonorRequest, repo: DonorRepository = Depends(get_donor_repo)) -> dict[str, str]:  # noqa: B008
  """Store a donor; subscribers are notified by the change feed, not by this handler."""
  try:
    donor_id = await repo.add(payload.to_entry())
  except RecordStoreError as exc:
    logger.error("Error adding donor: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add donor") from exc
  return {"id": donor_id, "message": "Donor added successfully"}


@router.get("/donors/{contact_number}")
async def get_donor(contact_number: str, repo: DonorRepository = Depends(get_donor_repo)) -> dict[str, Any]:  # noqa: B008
  try:
    donor = await repo.find_by_contact_number(contact_number)
  except RecordStoreError as exc:
    logger.error("Error fetching donor: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch donor") from exc

  if donor is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found")
  return donor.as_payload()


@router.put("/donors/{donor_id}")
async def update_donor(donor_id: str, payload: DonorRequest, repo: DonorRepository = Depends(get_donor_repo)) -> dict[str, str]:  # noqa: B008
  try:
    await repo.update(donor_id, payload.to_entry())
  except RecordNotFoundError as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found") from exc
  except RecordStoreError as exc:
    logger.error("Error updating donor: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update donor") from exc
  return {"message": "Donor updated successfully"}


@router.delete("/donors/{donor_id}")
async def delete_donor(donor_id: str, repo: DonorRepository = Depends(get_donor_repo)) -> dict[str, str]:  # noqa: B008
  try:
    await repo.delete(donor_id)
  except RecordStoreError as exc:
    logger.error("Error deleting donor: %s", exc)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete donor") from exc
  return {"message": "Donor deleted successfully"}
