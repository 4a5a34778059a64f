"""
enrollment_core/routes/prerequisites.py
Prerequisite edge routes
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.database import get_db
from enrollment_core.schemas.enrollment import PrerequisiteCreate, PrerequisiteResponse
from enrollment_core.services import prerequisite_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Prerequisites"])


@router.get("/prerequisites", response_model=List[PrerequisiteResponse])
async def list_prerequisites(db: AsyncSession = Depends(get_db)):
    return await prerequisite_service.get_all(db)


@router.post("/prerequisites", response_model=PrerequisiteResponse, status_code=status.HTTP_201_CREATED)
async def create_prerequisite(payload: PrerequisiteCreate, db: AsyncSession = Depends(get_db)):
    return await prerequisite_service.create(db, payload.subject_id, payload.prerequisite_subject_id)


@router.delete("/prerequisites/{prerequisite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prerequisite(prerequisite_id: int, db: AsyncSession = Depends(get_db)):
    await prerequisite_service.delete_prerequisite(db, prerequisite_id)


@router.get("/subjects/{subject_id}/prerequisites", response_model=List[PrerequisiteResponse])
async def list_subject_prerequisites(subject_id: int, db: AsyncSession = Depends(get_db)):
    """What the subject requires."""
    return await prerequisite_service.get_by_subject(db, subject_id)


@router.get("/subjects/{subject_id}/dependents", response_model=List[PrerequisiteResponse])
async def list_subject_dependents(subject_id: int, db: AsyncSession = Depends(get_db)):
    """What the subject unlocks."""
    return await prerequisite_service.get_subjects_that_require(db, subject_id)
