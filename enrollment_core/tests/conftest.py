"""
Shared fixtures: a file-backed SQLite database per test plus small factories.

A file is used instead of :memory: so that every session (and every
concurrent bulk item) sees the same database.
"""
from datetime import datetime
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.database import build_engine, build_session_factory, init_db
from enrollment_core.orm.career import Career, CareerSubject
from enrollment_core.orm.enrollment import Enrollment, EnrollmentStatus
from enrollment_core.orm.prerequisite import SubjectPrerequisite
from enrollment_core.orm.student import Student
from enrollment_core.orm.subject import Subject


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'enrollment_test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


class CatalogFactory:
    """Creates committed rows through one session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._dni = 10000000

    async def career(self, title: str = "Systems Engineering") -> Career:
        career = Career(title=title, total_years=5, total_semesters=10)
        self.db.add(career)
        await self.db.commit()
        return career

    async def subject(
        self,
        name: str,
        capacity: int = 30,
        current_enrollment: int = 0,
        year: int = 1,
        semester: int = 1,
        career: Optional[Career] = None
    ) -> Subject:
        subject = Subject(
            name=name,
            year=year,
            semester=semester,
            capacity=capacity,
            current_enrollment=current_enrollment
        )
        self.db.add(subject)
        await self.db.flush()
        if career is not None:
            self.db.add(CareerSubject(career_id=career.id, subject_id=subject.id, year=year, semester=semester))
        await self.db.commit()
        return subject

    async def student(self, first_name: str = "Ana", last_name: str = "Test") -> Student:
        self._dni += 1
        student = Student(first_name=first_name, last_name=last_name, dni=str(self._dni))
        self.db.add(student)
        await self.db.commit()
        return student

    async def requires(self, subject: Subject, *prerequisites: Subject) -> None:
        for prerequisite in prerequisites:
            self.db.add(SubjectPrerequisite(subject_id=subject.id, prerequisite_subject_id=prerequisite.id))
        await self.db.commit()

    async def record(
        self,
        student: Student,
        subject: Subject,
        status: EnrollmentStatus = EnrollmentStatus.COMPLETED
    ) -> Enrollment:
        """Insert an enrollment row directly, without touching seat counters."""
        enrollment = Enrollment(
            student_id=student.id,
            subject_id=subject.id,
            status=status,
            enrollment_date=datetime.utcnow()
        )
        self.db.add(enrollment)
        await self.db.commit()
        return enrollment


@pytest.fixture
def factory(db) -> CatalogFactory:
    return CatalogFactory(db)
