"""
Catalog Service

Read access to subjects and career placements, plus the placement writes
(assign / remove a subject from a career). Subject and career CRUD screens
live outside this package.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from enrollment_core.exceptions import SubjectNotFoundError, EnrollmentValidationError
from enrollment_core.orm.career import CareerSubject
from enrollment_core.orm.subject import Subject

logger = logging.getLogger(__name__)


async def get_subject(db: AsyncSession, subject_id: int) -> Optional[Subject]:
    result = await db.execute(
        select(Subject)
        .where(Subject.id == subject_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_subjects_by_ids(db: AsyncSession, subject_ids: Iterable[int]) -> Dict[int, Subject]:
    """Batch fetch subjects keyed by id. Unknown ids are simply absent."""
    ids = list(set(subject_ids))
    if not ids:
        return {}
    result = await db.execute(
        select(Subject)
        .where(Subject.id.in_(ids))
        .execution_options(populate_existing=True)
    )
    return {subject.id: subject for subject in result.scalars().all()}


async def get_subjects_for_career(db: AsyncSession, career_id: int) -> List[Subject]:
    """
    Subjects assigned to a career, ordered by their placement in it.

    An unknown career simply has no subjects.
    """
    stmt = (
        select(CareerSubject)
        .options(joinedload(CareerSubject.subject))
        .where(CareerSubject.career_id == career_id)
        .order_by(CareerSubject.year, CareerSubject.semester, CareerSubject.id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    links = result.scalars().all()
    return [link.subject for link in links if link.subject is not None]


async def get_capacity(db: AsyncSession, subject_id: int) -> Optional[Dict[str, int]]:
    """`{capacity, current_enrollment}` for a subject, or None if it doesn't exist."""
    result = await db.execute(
        select(Subject.capacity, Subject.current_enrollment).where(Subject.id == subject_id)
    )
    row = result.one_or_none()
    if row is None:
        return None
    return {"capacity": row.capacity, "current_enrollment": row.current_enrollment}


async def get_available_spots(db: AsyncSession, subject_id: int) -> int:
    capacity = await get_capacity(db, subject_id)
    if capacity is None:
        return 0
    return capacity["capacity"] - capacity["current_enrollment"]


async def assign_subject(
    db: AsyncSession,
    career_id: int,
    subject_id: int,
    year: int,
    semester: int
) -> CareerSubject:
    """Place a subject in a career at (year, semester)."""
    if year < 1 or semester not in (1, 2):
        raise EnrollmentValidationError(
            "Placement needs year >= 1 and semester 1 or 2",
            details={"year": year, "semester": semester}
        )

    subject = await get_subject(db, subject_id)
    if subject is None:
        raise SubjectNotFoundError(subject_id)

    link = CareerSubject(career_id=career_id, subject_id=subject_id, year=year, semester=semester)
    db.add(link)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise EnrollmentValidationError(
            f"Subject {subject_id} cannot be assigned to career {career_id} (already placed or unknown career)",
            details={"career_id": career_id, "subject_id": subject_id}
        )
    await db.refresh(link)

    logger.info(f"[CATALOG] subject={subject_id} assigned to career={career_id} at {year}/{semester}")
    return link


async def remove_subject(db: AsyncSession, career_id: int, subject_id: int) -> int:
    """Remove a subject from a career. Returns the number of placements removed."""
    result = await db.execute(
        delete(CareerSubject).where(
            CareerSubject.career_id == career_id,
            CareerSubject.subject_id == subject_id
        )
    )
    await db.commit()
    logger.info(f"[CATALOG] subject={subject_id} removed from career={career_id}")
    return result.rowcount
