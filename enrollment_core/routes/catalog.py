"""
enrollment_core/routes/catalog.py
Career placement and seat availability routes
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.database import get_db
from enrollment_core.exceptions import SubjectNotFoundError
from enrollment_core.schemas.enrollment import PlacementCreate, SubjectCapacityResponse, SubjectSummary
from enrollment_core.services import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


@router.get("/subjects/{subject_id}/capacity", response_model=SubjectCapacityResponse)
async def read_subject_capacity(subject_id: int, db: AsyncSession = Depends(get_db)):
    capacity = await catalog_service.get_capacity(db, subject_id)
    if capacity is None:
        raise SubjectNotFoundError(subject_id)
    return SubjectCapacityResponse(
        subject_id=subject_id,
        available_spots=await catalog_service.get_available_spots(db, subject_id),
        **capacity
    )


@router.get("/careers/{career_id}/subjects", response_model=List[SubjectSummary])
async def list_career_subjects(career_id: int, db: AsyncSession = Depends(get_db)):
    return await catalog_service.get_subjects_for_career(db, career_id)


@router.post("/careers/{career_id}/subjects", status_code=status.HTTP_201_CREATED)
async def assign_subject_to_career(
    career_id: int,
    payload: PlacementCreate,
    db: AsyncSession = Depends(get_db)
):
    link = await catalog_service.assign_subject(db, career_id, payload.subject_id, payload.year, payload.semester)
    return link.to_dict()


@router.delete("/careers/{career_id}/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_subject_from_career(career_id: int, subject_id: int, db: AsyncSession = Depends(get_db)):
    await catalog_service.remove_subject(db, career_id, subject_id)
