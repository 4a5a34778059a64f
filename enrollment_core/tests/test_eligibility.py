"""
Eligibility Engine Test Suite

Decision order, dropped-record semantics, capacity reporting and the
career-scoped edge filter.
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.orm.enrollment import Enrollment, EnrollmentStatus
from enrollment_core.services.eligibility_service import (
    SubjectEligibilityStatus,
    compute_state,
    get_eligibility_for_student,
    get_missing_prerequisites,
    missing_prerequisite_ids,
)


def _record(subject_id: int, status: EnrollmentStatus) -> Enrollment:
    return Enrollment(student_id=1, subject_id=subject_id, status=status)


# =============================================================================
# Pure decision
# =============================================================================

def test_completed_wins_over_missing_prerequisites():
    own = _record(10, EnrollmentStatus.COMPLETED)
    state = compute_state(own, [1, 2], {10: own})
    assert state == SubjectEligibilityStatus.ALREADY_PASSED


def test_active_wins_over_missing_prerequisites():
    own = _record(10, EnrollmentStatus.ACTIVE)
    state = compute_state(own, [1], {10: own})
    assert state == SubjectEligibilityStatus.CURRENTLY_ENROLLED


def test_no_prerequisites_is_available():
    assert compute_state(None, [], {}) == SubjectEligibilityStatus.AVAILABLE


def test_all_prerequisites_completed_is_available():
    records = {1: _record(1, EnrollmentStatus.COMPLETED), 2: _record(2, EnrollmentStatus.COMPLETED)}
    assert compute_state(None, [1, 2], records) == SubjectEligibilityStatus.AVAILABLE


def test_active_prerequisite_does_not_count():
    records = {1: _record(1, EnrollmentStatus.ACTIVE)}
    assert compute_state(None, [1], records) == SubjectEligibilityStatus.LOCKED


def test_dropped_own_record_behaves_like_no_record():
    own = _record(10, EnrollmentStatus.DROPPED)
    records = {10: own, 1: _record(1, EnrollmentStatus.COMPLETED)}
    assert compute_state(own, [1], records) == SubjectEligibilityStatus.AVAILABLE
    assert compute_state(own, [2], records) == SubjectEligibilityStatus.LOCKED


def test_missing_ids_keep_order_without_repeats():
    records = {2: _record(2, EnrollmentStatus.COMPLETED), 3: _record(3, EnrollmentStatus.DROPPED)}
    assert missing_prerequisite_ids([3, 1, 2, 3, 1], records) == [3, 1]


# =============================================================================
# Career eligibility
# =============================================================================

@pytest.mark.asyncio
async def test_every_career_subject_gets_exactly_one_status(db: AsyncSession, factory):
    career = await factory.career()
    a = await factory.subject("Algebra", career=career)
    b = await factory.subject("Calculus", career=career, year=1, semester=2)
    c = await factory.subject("Physics", career=career, year=2)
    await factory.subject("Outside", career=None)
    await factory.requires(b, a)
    await factory.requires(c, b)
    student = await factory.student()
    await factory.record(student, a, EnrollmentStatus.COMPLETED)

    eligibility = await get_eligibility_for_student(db, student.id, career.id)

    assert list(eligibility) == [a.id, b.id, c.id]
    assert eligibility[a.id].status == SubjectEligibilityStatus.ALREADY_PASSED
    assert eligibility[b.id].status == SubjectEligibilityStatus.AVAILABLE
    assert eligibility[c.id].status == SubjectEligibilityStatus.LOCKED
    assert [s.id for s in eligibility[c.id].missing_prerequisites] == [b.id]


@pytest.mark.asyncio
async def test_missing_list_only_on_locked_subjects(db: AsyncSession, factory):
    career = await factory.career()
    a = await factory.subject("Algebra", career=career)
    b = await factory.subject("Calculus", career=career)
    await factory.requires(b, a)
    student = await factory.student()
    await factory.record(student, b, EnrollmentStatus.ACTIVE)

    eligibility = await get_eligibility_for_student(db, student.id, career.id)

    assert eligibility[b.id].status == SubjectEligibilityStatus.CURRENTLY_ENROLLED
    assert eligibility[b.id].missing_prerequisites == []
    assert eligibility[a.id].missing_prerequisites == []


@pytest.mark.asyncio
async def test_full_subject_stays_available(db: AsyncSession, factory):
    career = await factory.career()
    full = await factory.subject("Seminar", capacity=10, current_enrollment=10, career=career)
    student = await factory.student()

    item = (await get_eligibility_for_student(db, student.id, career.id))[full.id]

    assert item.status == SubjectEligibilityStatus.AVAILABLE
    assert item.has_capacity is False
    assert item.available_spots == 0
    assert item.to_dict()["capacity"] == 10


@pytest.mark.asyncio
async def test_dropped_prerequisite_keeps_subject_locked(db: AsyncSession, factory):
    career = await factory.career()
    a = await factory.subject("Algebra", career=career)
    b = await factory.subject("Calculus", career=career)
    await factory.requires(b, a)
    student = await factory.student()
    await factory.record(student, a, EnrollmentStatus.DROPPED)

    eligibility = await get_eligibility_for_student(db, student.id, career.id)

    assert eligibility[a.id].status == SubjectEligibilityStatus.AVAILABLE
    assert eligibility[b.id].status == SubjectEligibilityStatus.LOCKED
    assert eligibility[b.id].to_dict()["missing_prerequisites"][0]["name"] == "Algebra"


@pytest.mark.asyncio
async def test_out_of_career_edges_are_ignored(db: AsyncSession, factory):
    career = await factory.career()
    inside = await factory.subject("Databases", career=career)
    outside = await factory.subject("Elective", career=None)
    await factory.requires(inside, outside)
    student = await factory.student()

    eligibility = await get_eligibility_for_student(db, student.id, career.id)

    assert eligibility[inside.id].status == SubjectEligibilityStatus.AVAILABLE


@pytest.mark.asyncio
async def test_unknown_career_is_empty(db: AsyncSession, factory):
    student = await factory.student()
    assert await get_eligibility_for_student(db, student.id, 9999) == {}


@pytest.mark.asyncio
async def test_eligibility_is_recomputed_on_each_call(db: AsyncSession, factory):
    career = await factory.career()
    a = await factory.subject("Algebra", career=career)
    b = await factory.subject("Calculus", career=career)
    await factory.requires(b, a)
    student = await factory.student()

    before = await get_eligibility_for_student(db, student.id, career.id)
    await factory.record(student, a, EnrollmentStatus.COMPLETED)
    after = await get_eligibility_for_student(db, student.id, career.id)

    assert before[b.id].status == SubjectEligibilityStatus.LOCKED
    assert after[b.id].status == SubjectEligibilityStatus.AVAILABLE


# =============================================================================
# Missing prerequisites
# =============================================================================

@pytest.mark.asyncio
async def test_missing_prerequisites_spans_careers(db: AsyncSession, factory):
    career = await factory.career()
    a = await factory.subject("Algebra", career=career)
    elective = await factory.subject("Elective", career=None)
    target = await factory.subject("Thesis", career=career)
    await factory.requires(target, a, elective)
    student = await factory.student()
    await factory.record(student, a, EnrollmentStatus.COMPLETED)

    missing = await get_missing_prerequisites(db, student.id, target.id)

    assert [s.id for s in missing] == [elective.id]


@pytest.mark.asyncio
async def test_no_missing_prerequisites_without_edges(db: AsyncSession, factory):
    subject = await factory.subject("Algebra")
    student = await factory.student()
    assert await get_missing_prerequisites(db, student.id, subject.id) == []
