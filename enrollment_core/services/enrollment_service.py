"""
Enrollment Service (gatekeeper)

Validates and executes enrollment requests.

Core Principles:
- `can_enroll` answers with the current store state and never writes
- `enroll` re-checks capacity only, so it doubles as an administrative override
- The seat claim and the insert share one transaction: the claim is a
  conditional UPDATE that only matches while `current_enrollment < capacity`,
  so concurrent callers can never over-fill a subject
- Bulk enrollment validates every item before creating any, and isolates
  per-item failures
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from enrollment_core.config.settings import settings
from enrollment_core.exceptions import (
    CapacityExceededError,
    DuplicateEnrollmentError,
    EnrollmentConflictError,
    EnrollmentCoreError,
    EnrollmentNotFoundError,
    EnrollmentValidationError,
    SubjectNotFoundError,
)
from enrollment_core.orm.enrollment import Enrollment, EnrollmentStatus
from enrollment_core.orm.subject import Subject
from enrollment_core.services import catalog_service, prerequisite_service
from enrollment_core.services.eligibility_service import (
    get_enrollment_for,
    get_enrollment_map,
    missing_prerequisite_ids,
)

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    """Why `check_enrollment` refused a request"""
    ALREADY_RECORDED = "ALREADY_RECORDED"
    PREREQUISITES_MISSING = "PREREQUISITES_MISSING"
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    SUBJECT_FULL = "SUBJECT_FULL"


@dataclass
class EnrollmentCheck:
    subject_id: int
    allowed: bool
    reason: Optional[RejectionReason] = None
    subject_name: Optional[str] = None
    missing_prerequisite_ids: List[int] = field(default_factory=list)


class BulkOutcome(str, Enum):
    ENROLLED = "enrolled"
    REJECTED = "rejected"   # failed validation, never submitted
    FAILED = "failed"       # passed validation, failed at creation


@dataclass
class BulkItemResult:
    subject_id: int
    outcome: BulkOutcome
    subject_name: Optional[str] = None
    reason: Optional[str] = None
    enrollment_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "enrollment_id": self.enrollment_id,
        }


@dataclass
class BulkEnrollmentResult:
    success_count: int = 0
    failure_count: int = 0
    invalid_subjects: List[Dict[str, Any]] = field(default_factory=list)
    results: List[BulkItemResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "invalid_subjects": list(self.invalid_subjects),
            "results": [item.to_dict() for item in self.results],
        }


# ================= HELPERS =================

def coerce_status(status: Union[str, EnrollmentStatus]) -> EnrollmentStatus:
    if isinstance(status, EnrollmentStatus):
        return status
    try:
        return EnrollmentStatus(str(status).lower())
    except ValueError:
        raise EnrollmentValidationError(
            f"Unknown enrollment status '{status}'",
            details={"allowed": [s.value for s in EnrollmentStatus]}
        )


def _require_ids(student_id: Optional[int], subject_id: Optional[int]) -> None:
    missing = []
    if not student_id:
        missing.append("student_id")
    if not subject_id:
        missing.append("subject_id")
    if missing:
        raise EnrollmentValidationError(
            f"Missing required field(s): {', '.join(missing)}",
            details={"missing": missing}
        )


async def _claim_seat(db: AsyncSession, subject_id: int, seats: int = 1) -> bool:
    """
    Take `seats` seats only while the subject is below capacity.

    With `seats=0` this is a pure capacity check performed in the same
    statement shape. Returns False when nothing matched (full or missing).
    """
    result = await db.execute(
        update(Subject)
        .where(
            Subject.id == subject_id,
            Subject.current_enrollment < Subject.capacity
        )
        .values(current_enrollment=Subject.current_enrollment + seats)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def _release_seat(db: AsyncSession, subject_id: int) -> None:
    await db.execute(
        update(Subject)
        .where(Subject.id == subject_id, Subject.current_enrollment > 0)
        .values(current_enrollment=Subject.current_enrollment - 1)
        .execution_options(synchronize_session=False)
    )


async def _raise_capacity_failure(db: AsyncSession, subject_id: int) -> None:
    capacity = await catalog_service.get_capacity(db, subject_id)
    if capacity is None:
        raise SubjectNotFoundError(subject_id)
    logger.warning(
        f"[CAPACITY EXCEEDED] subject={subject_id} "
        f"{capacity['current_enrollment']}/{capacity['capacity']}"
    )
    raise CapacityExceededError(subject_id, capacity["capacity"])


# ================= SINGLE CHECK =================

async def check_enrollment(db: AsyncSession, student_id: int, subject_id: int) -> EnrollmentCheck:
    """
    Decide whether a student may enroll in a subject, with the reason.

    Short-circuits on the first failing rule:
    a. any existing record (active, completed or dropped) blocks
    b. every prerequisite must be completed
    c. the subject must exist and have a free seat
    """
    existing = await get_enrollment_for(db, student_id, subject_id)
    if existing is not None:
        return EnrollmentCheck(subject_id, False, RejectionReason.ALREADY_RECORDED)

    edges = await prerequisite_service.get_by_subject(db, subject_id)
    if edges:
        enrollments_by_subject = await get_enrollment_map(db, student_id)
        missing = missing_prerequisite_ids(
            [edge.prerequisite_subject_id for edge in edges],
            enrollments_by_subject
        )
        if missing:
            return EnrollmentCheck(
                subject_id, False, RejectionReason.PREREQUISITES_MISSING,
                missing_prerequisite_ids=missing
            )

    subject = await catalog_service.get_subject(db, subject_id)
    if subject is None:
        return EnrollmentCheck(subject_id, False, RejectionReason.SUBJECT_NOT_FOUND)

    if not subject.has_capacity:
        return EnrollmentCheck(subject_id, False, RejectionReason.SUBJECT_FULL, subject_name=subject.name)

    return EnrollmentCheck(subject_id, True, subject_name=subject.name)


async def can_enroll(db: AsyncSession, student_id: int, subject_id: int) -> bool:
    check = await check_enrollment(db, student_id, subject_id)
    if not check.allowed:
        logger.info(f"[ENROLL CHECK] student={student_id} subject={subject_id} rejected: {check.reason.value}")
    return check.allowed


# ================= CREATE =================

async def enroll(
    db: AsyncSession,
    student_id: int,
    subject_id: int,
    status: Union[str, EnrollmentStatus] = EnrollmentStatus.ACTIVE
) -> Enrollment:
    """
    Create an enrollment record.

    Prerequisites are NOT checked here. Capacity is: every insert requires a
    free seat at the moment of the write, and only active records take one.

    Raises:
        EnrollmentValidationError: missing ids or unknown status
        SubjectNotFoundError: subject absent
        CapacityExceededError: subject full
        DuplicateEnrollmentError: a record for (student, subject) already exists
    """
    _require_ids(student_id, subject_id)
    status = coerce_status(status)

    logger.info(f"[ENROLL START] student={student_id} subject={subject_id} status={status.value}")

    claimed = await _claim_seat(db, subject_id, seats=1 if status.holds_seat else 0)
    if not claimed:
        await db.rollback()
        await _raise_capacity_failure(db, subject_id)

    enrollment = Enrollment(
        student_id=student_id,
        subject_id=subject_id,
        status=status,
        enrollment_date=datetime.utcnow(),
    )
    db.add(enrollment)

    try:
        await db.flush()
    except IntegrityError as e:
        # Rolls back the seat claim too
        await db.rollback()
        if await get_enrollment_for(db, student_id, subject_id) is not None:
            logger.warning(f"[DUPLICATE ENROLLMENT] student={student_id} subject={subject_id}")
            raise DuplicateEnrollmentError(student_id, subject_id)
        logger.error(f"[DB ERROR] enroll student={student_id} subject={subject_id}: {e}")
        raise EnrollmentValidationError(
            f"Enrollment rejected by the store for student {student_id}",
            details={"student_id": student_id, "subject_id": subject_id}
        )

    await db.commit()
    await db.refresh(enrollment)

    logger.info(f"[ENROLL SUCCESS] enrollment={enrollment.id} student={student_id} subject={subject_id}")
    return enrollment


# ================= BULK =================

async def bulk_enroll(
    session_factory: async_sessionmaker,
    student_id: int,
    subject_ids: Iterable[int],
    max_concurrency: Optional[int] = None
) -> BulkEnrollmentResult:
    """
    Enroll a student in several subjects from one selection.

    1. Every id is validated (`check_enrollment`) concurrently
    2. Rejected ids are reported by name and never submitted
    3. Accepted ids are created concurrently; each may still fail at
       the seat claim, which is recorded per item
    All validation completes before the first creation is issued. Fan-out
    is bounded by a semaphore; every item uses its own session.
    """
    if not student_id:
        raise EnrollmentValidationError("Missing required field(s): student_id", details={"missing": ["student_id"]})

    unique_ids = list(dict.fromkeys(subject_ids))
    result = BulkEnrollmentResult()
    if not unique_ids:
        return result

    limit = max_concurrency or settings.BULK_ENROLL_MAX_CONCURRENCY
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _validate(subject_id: int) -> EnrollmentCheck:
        async with semaphore:
            async with session_factory() as db:
                return await check_enrollment(db, student_id, subject_id)

    async def _create(subject_id: int) -> Enrollment:
        async with semaphore:
            async with session_factory() as db:
                return await enroll(db, student_id, subject_id)

    checks = await asyncio.gather(*[_validate(sid) for sid in unique_ids], return_exceptions=True)

    valid_ids: List[int] = []
    names: Dict[int, Optional[str]] = {}
    rejected: List[BulkItemResult] = []
    for subject_id, check in zip(unique_ids, checks):
        if isinstance(check, BaseException):
            if not isinstance(check, Exception):
                raise check
            logger.error(f"[BULK VALIDATION ERROR] student={student_id} subject={subject_id}: {check}")
            rejected.append(BulkItemResult(subject_id, BulkOutcome.REJECTED, reason="STORE_ERROR"))
        elif check.allowed:
            valid_ids.append(subject_id)
            names[subject_id] = check.subject_name
        else:
            rejected.append(BulkItemResult(subject_id, BulkOutcome.REJECTED, reason=check.reason.value))

    if rejected:
        async with session_factory() as db:
            subjects = await catalog_service.get_subjects_by_ids(db, [item.subject_id for item in rejected])
        for item in rejected:
            subject = subjects.get(item.subject_id)
            item.subject_name = subject.name if subject else None
            result.invalid_subjects.append({"id": item.subject_id, "name": item.subject_name})
        logger.warning(
            f"[BULK REJECTED] student={student_id} "
            f"subjects={[item.subject_id for item in rejected]}"
        )

    created: List[BulkItemResult] = []
    if valid_ids:
        outcomes = await asyncio.gather(*[_create(sid) for sid in valid_ids], return_exceptions=True)
        for subject_id, outcome in zip(valid_ids, outcomes):
            if isinstance(outcome, Enrollment):
                created.append(BulkItemResult(
                    subject_id, BulkOutcome.ENROLLED,
                    subject_name=names.get(subject_id), enrollment_id=outcome.id
                ))
            elif isinstance(outcome, EnrollmentCoreError):
                created.append(BulkItemResult(
                    subject_id, BulkOutcome.FAILED,
                    subject_name=names.get(subject_id), reason=outcome.code
                ))
            elif isinstance(outcome, SQLAlchemyError):
                logger.error(f"[BULK CREATE ERROR] student={student_id} subject={subject_id}: {outcome}")
                created.append(BulkItemResult(
                    subject_id, BulkOutcome.FAILED,
                    subject_name=names.get(subject_id), reason="STORE_ERROR"
                ))
            else:
                raise outcome

    by_id = {item.subject_id: item for item in rejected + created}
    result.results = [by_id[sid] for sid in unique_ids]
    result.success_count = sum(1 for item in result.results if item.outcome == BulkOutcome.ENROLLED)
    result.failure_count = len(result.results) - result.success_count

    logger.info(
        f"[BULK ENROLL] student={student_id} success={result.success_count} "
        f"failure={result.failure_count}"
    )
    return result


# ================= STATUS / LOOKUP / DELETE =================

# guarded writes retried this many times before reporting a conflict
_MAX_STATUS_ATTEMPTS = 3


async def _load_enrollment(db: AsyncSession, enrollment_id: int) -> Optional[Enrollment]:
    # populate_existing: a reused session must not answer from a stale identity map
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.id == enrollment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_enrollment(db: AsyncSession, enrollment_id: int) -> Enrollment:
    enrollment = await _load_enrollment(db, enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    return enrollment


async def change_status(
    db: AsyncSession,
    enrollment_id: int,
    new_status: Union[str, EnrollmentStatus]
) -> Enrollment:
    """
    Overwrite an enrollment's status.

    Any transition is allowed (administrative correction). Seats follow the
    status: leaving `active` frees one, entering `active` claims one and
    fails with CapacityExceededError when the subject is full.

    The status write only matches while the row still holds the status it
    was read with, and the seat moves in the same transaction. A writer
    that loses the race re-reads and tries again, so one transition moves
    at most one seat.
    """
    new_status = coerce_status(new_status)

    for attempt in range(1, _MAX_STATUS_ATTEMPTS + 1):
        enrollment = await get_enrollment(db, enrollment_id)
        old_status = enrollment.status
        subject_id = enrollment.subject_id

        result = await db.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id, Enrollment.status == old_status)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.warning(
                f"[STATUS CONFLICT] enrollment={enrollment_id} attempt={attempt} "
                f"expected={old_status.value}"
            )
            continue

        if old_status.holds_seat and not new_status.holds_seat:
            await _release_seat(db, subject_id)
        elif new_status.holds_seat and not old_status.holds_seat:
            if not await _claim_seat(db, subject_id):
                # also undoes the status write above
                await db.rollback()
                await _raise_capacity_failure(db, subject_id)

        await db.commit()
        logger.info(
            f"[STATUS CHANGED] enrollment={enrollment_id} "
            f"{old_status.value} -> {new_status.value}"
        )
        return await get_enrollment(db, enrollment_id)

    raise EnrollmentConflictError(enrollment_id)


async def delete_enrollment(db: AsyncSession, enrollment_id: int) -> None:
    """Delete a record, freeing its seat when it held one. Guarded like `change_status`."""
    for attempt in range(1, _MAX_STATUS_ATTEMPTS + 1):
        enrollment = await get_enrollment(db, enrollment_id)
        old_status = enrollment.status
        subject_id = enrollment.subject_id

        result = await db.execute(
            delete(Enrollment)
            .where(Enrollment.id == enrollment_id, Enrollment.status == old_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.warning(
                f"[DELETE CONFLICT] enrollment={enrollment_id} attempt={attempt} "
                f"expected={old_status.value}"
            )
            continue

        if old_status.holds_seat:
            await _release_seat(db, subject_id)
        await db.commit()
        db.expunge(enrollment)
        logger.info(f"[ENROLLMENT DELETED] enrollment={enrollment_id}")
        return

    raise EnrollmentConflictError(enrollment_id)
