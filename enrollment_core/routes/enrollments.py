"""
enrollment_core/routes/enrollments.py
Enrollment write routes: single, bulk, status change, delete
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from enrollment_core.database import get_db, get_session_factory
from enrollment_core.schemas.enrollment import (
    BulkEnrollmentRequest,
    BulkEnrollmentResponse,
    EnrollmentCreate,
    EnrollmentResponse,
    StatusChangeRequest,
)
from enrollment_core.services import enrollment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.post("", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    payload: EnrollmentCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create an enrollment.

    Only capacity is re-checked here; clients that want the full rule set
    call the can-enroll route (or the bulk route) first.
    """
    return await enrollment_service.enroll(db, payload.student_id, payload.subject_id, payload.status)


@router.post("/bulk", response_model=BulkEnrollmentResponse)
async def create_bulk_enrollment(
    payload: BulkEnrollmentRequest,
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    result = await enrollment_service.bulk_enroll(session_factory, payload.student_id, payload.subject_ids)
    return result.to_dict()


@router.get("/{enrollment_id}", response_model=EnrollmentResponse)
async def read_enrollment(enrollment_id: int, db: AsyncSession = Depends(get_db)):
    return await enrollment_service.get_enrollment(db, enrollment_id)


@router.patch("/{enrollment_id}/status", response_model=EnrollmentResponse)
async def update_enrollment_status(
    enrollment_id: int,
    payload: StatusChangeRequest,
    db: AsyncSession = Depends(get_db)
):
    return await enrollment_service.change_status(db, enrollment_id, payload.status)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_enrollment(enrollment_id: int, db: AsyncSession = Depends(get_db)):
    await enrollment_service.delete_enrollment(db, enrollment_id)
