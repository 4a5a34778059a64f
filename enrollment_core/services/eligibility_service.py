"""
Enrollment Eligibility Service

Derives, for every subject of a career, the definitive eligibility state of
a student, the prerequisites still missing, and the seat availability.

Decision order (first match wins):
    1. own enrollment completed           -> ALREADY_PASSED
    2. own enrollment active              -> CURRENTLY_ENROLLED
    3. some prerequisite not completed    -> LOCKED (+ missing list)
    4. otherwise                          -> AVAILABLE

A dropped enrollment counts as "no enrollment" both for the subject itself
and for anything that requires it. Capacity is reported next to the status,
never folded into it: an AVAILABLE subject may have zero free seats.

Nothing here writes; every call recomputes from the current store state.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.orm.enrollment import Enrollment, EnrollmentStatus
from enrollment_core.orm.subject import Subject
from enrollment_core.services import catalog_service, prerequisite_service

logger = logging.getLogger(__name__)


class SubjectEligibilityStatus(str, Enum):
    """Derived state of a subject for one student"""
    ALREADY_PASSED = "ALREADY_PASSED"
    CURRENTLY_ENROLLED = "CURRENTLY_ENROLLED"
    LOCKED = "LOCKED"
    AVAILABLE = "AVAILABLE"


@dataclass
class SubjectEligibility:
    subject_id: int
    subject_name: str
    status: SubjectEligibilityStatus
    missing_prerequisites: List[Subject] = field(default_factory=list)
    has_capacity: bool = False
    available_spots: int = 0
    current_enrollment: int = 0
    capacity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "status": self.status.value,
            "missing_prerequisites": [
                {"id": s.id, "name": s.name, "year": s.year, "semester": s.semester}
                for s in self.missing_prerequisites
            ],
            "has_capacity": self.has_capacity,
            "available_spots": self.available_spots,
            "current_enrollment": self.current_enrollment,
            "capacity": self.capacity,
        }


# ================= PURE DECISION =================

def is_completed(enrollment: Optional[Enrollment]) -> bool:
    return enrollment is not None and enrollment.status == EnrollmentStatus.COMPLETED


def missing_prerequisite_ids(
    prerequisite_ids: Iterable[int],
    enrollments_by_subject: Dict[int, Enrollment]
) -> List[int]:
    """Prerequisites the student has not completed, in input order, without repeats."""
    missing = []
    for prereq_id in prerequisite_ids:
        if prereq_id in missing:
            continue
        if not is_completed(enrollments_by_subject.get(prereq_id)):
            missing.append(prereq_id)
    return missing


def compute_state(
    enrollment: Optional[Enrollment],
    prerequisite_ids: Iterable[int],
    enrollments_by_subject: Dict[int, Enrollment]
) -> SubjectEligibilityStatus:
    """
    Pure function: eligibility state of one subject.

    Args:
        enrollment: the student's own record for this subject, if any
        prerequisite_ids: ids the subject requires (AND semantics)
        enrollments_by_subject: every record of the student, keyed by subject id

    Returns:
        SubjectEligibilityStatus
    """
    if enrollment is not None:
        if enrollment.status == EnrollmentStatus.COMPLETED:
            return SubjectEligibilityStatus.ALREADY_PASSED
        if enrollment.status == EnrollmentStatus.ACTIVE:
            return SubjectEligibilityStatus.CURRENTLY_ENROLLED

    if missing_prerequisite_ids(prerequisite_ids, enrollments_by_subject):
        return SubjectEligibilityStatus.LOCKED
    return SubjectEligibilityStatus.AVAILABLE


def build_eligibility(
    subject: Subject,
    enrollment: Optional[Enrollment],
    prerequisite_ids: List[int],
    enrollments_by_subject: Dict[int, Enrollment],
    subjects_by_id: Dict[int, Subject]
) -> SubjectEligibility:
    """Status + missing subjects + capacity fields for one subject."""
    status = compute_state(enrollment, prerequisite_ids, enrollments_by_subject)

    missing: List[Subject] = []
    if status == SubjectEligibilityStatus.LOCKED:
        missing = [
            subjects_by_id[prereq_id]
            for prereq_id in missing_prerequisite_ids(prerequisite_ids, enrollments_by_subject)
            if prereq_id in subjects_by_id
        ]

    return SubjectEligibility(
        subject_id=subject.id,
        subject_name=subject.name,
        status=status,
        missing_prerequisites=missing,
        has_capacity=subject.has_capacity,
        available_spots=subject.available_spots,
        current_enrollment=subject.current_enrollment,
        capacity=subject.capacity,
    )


# ================= STORE READS =================

async def get_student_enrollments(
    db: AsyncSession,
    student_id: int,
    status: Optional[EnrollmentStatus] = None
) -> List[Enrollment]:
    """A student's records, newest first, optionally narrowed to one status."""
    stmt = select(Enrollment).where(Enrollment.student_id == student_id)
    if status is not None:
        stmt = stmt.where(Enrollment.status == status)
    result = await db.execute(
        stmt.order_by(Enrollment.enrollment_date.desc(), Enrollment.id.desc())
    )
    return list(result.scalars().all())


async def get_enrollment_map(db: AsyncSession, student_id: int) -> Dict[int, Enrollment]:
    """All of a student's records in one read, keyed by subject id."""
    enrollments = await get_student_enrollments(db, student_id)
    return {enrollment.subject_id: enrollment for enrollment in enrollments}


async def get_enrollment_for(db: AsyncSession, student_id: int, subject_id: int) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.subject_id == subject_id
        )
    )
    return result.scalars().first()


# ================= PUBLIC OPERATIONS =================

async def get_eligibility_for_student(
    db: AsyncSession,
    student_id: int,
    career_id: int
) -> Dict[int, SubjectEligibility]:
    """
    Eligibility of every subject in a career for a student.

    Only prerequisite edges with both ends inside the career are applied.

    Returns:
        Dict subject_id -> SubjectEligibility, in career placement order
    """
    subjects = await catalog_service.get_subjects_for_career(db, career_id)
    subjects_by_id = {subject.id: subject for subject in subjects}

    all_edges = await prerequisite_service.get_all(db)
    edges = prerequisite_service.edges_within(all_edges, set(subjects_by_id))
    prerequisite_map = prerequisite_service.build_prerequisite_map(edges)

    enrollments_by_subject = await get_enrollment_map(db, student_id)

    eligibility: Dict[int, SubjectEligibility] = {}
    for subject in subjects:
        eligibility[subject.id] = build_eligibility(
            subject,
            enrollments_by_subject.get(subject.id),
            prerequisite_map.get(subject.id, []),
            enrollments_by_subject,
            subjects_by_id,
        )

    logger.debug(
        f"[ELIGIBILITY] student={student_id} career={career_id} subjects={len(eligibility)}"
    )
    return eligibility


async def get_missing_prerequisites(db: AsyncSession, student_id: int, subject_id: int) -> List[Subject]:
    """
    Prerequisite subjects of `subject_id` the student has not completed.

    Considers every edge of the subject, regardless of career.
    """
    edges = await prerequisite_service.get_by_subject(db, subject_id)
    if not edges:
        return []

    enrollments_by_subject = await get_enrollment_map(db, student_id)
    missing_ids = missing_prerequisite_ids(
        [edge.prerequisite_subject_id for edge in edges],
        enrollments_by_subject
    )
    if not missing_ids:
        return []

    subjects_by_id = await catalog_service.get_subjects_by_ids(db, missing_ids)
    return [subjects_by_id[prereq_id] for prereq_id in missing_ids if prereq_id in subjects_by_id]
