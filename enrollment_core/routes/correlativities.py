"""
enrollment_core/routes/correlativities.py
Student-facing eligibility and correlativities graph routes

Everything here is read-only and recomputed from the store on each call.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.database import get_db
from enrollment_core.orm.enrollment import EnrollmentStatus
from enrollment_core.schemas.enrollment import (
    CanEnrollResponse,
    CorrelativitiesGraphResponse,
    EnrollmentResponse,
    SubjectEligibilityResponse,
    SubjectSummary,
)
from enrollment_core.services import correlativities_service, eligibility_service, enrollment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Correlativities"])


@router.get(
    "/{student_id}/careers/{career_id}/eligibility",
    response_model=List[SubjectEligibilityResponse]
)
async def get_eligibility(
    student_id: int,
    career_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Eligibility of every subject in the career, in placement order."""
    eligibility = await eligibility_service.get_eligibility_for_student(db, student_id, career_id)
    return [item.to_dict() for item in eligibility.values()]


@router.get(
    "/{student_id}/careers/{career_id}/graph",
    response_model=CorrelativitiesGraphResponse
)
async def get_graph(
    student_id: int,
    career_id: int,
    db: AsyncSession = Depends(get_db)
):
    graph = await correlativities_service.get_graph_for_student(db, student_id, career_id)
    return graph.to_dict()


@router.get(
    "/{student_id}/subjects/{subject_id}/can-enroll",
    response_model=CanEnrollResponse
)
async def get_can_enroll(
    student_id: int,
    subject_id: int,
    db: AsyncSession = Depends(get_db)
):
    allowed = await enrollment_service.can_enroll(db, student_id, subject_id)
    return CanEnrollResponse(student_id=student_id, subject_id=subject_id, can_enroll=allowed)


@router.get(
    "/{student_id}/subjects/{subject_id}/missing-prerequisites",
    response_model=List[SubjectSummary]
)
async def get_missing_prerequisites(
    student_id: int,
    subject_id: int,
    db: AsyncSession = Depends(get_db)
):
    return await eligibility_service.get_missing_prerequisites(db, student_id, subject_id)


@router.get("/{student_id}/enrollments", response_model=List[EnrollmentResponse])
async def list_student_enrollments(
    student_id: int,
    status: Optional[EnrollmentStatus] = None,
    db: AsyncSession = Depends(get_db)
):
    """Every record of the student, newest first. `status` narrows the list."""
    return await eligibility_service.get_student_enrollments(db, student_id, status)
