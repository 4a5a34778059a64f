"""
enrollment_core/seed/seed_demo.py
Seed a demo career with subjects, correlativities and one student (idempotent)
"""
import asyncio
import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.database import AsyncSessionLocal, init_db
from enrollment_core.orm.career import Career, CareerSubject
from enrollment_core.orm.prerequisite import SubjectPrerequisite
from enrollment_core.orm.student import Student
from enrollment_core.orm.subject import Subject

logger = logging.getLogger(__name__)


CAREER = {"title": "Systems Engineering", "total_years": 5, "total_semesters": 10}

# (name, year, semester, capacity)
SUBJECTS = [
    ("Algebra", 1, 1, 60),
    ("Calculus I", 1, 1, 60),
    ("Programming I", 1, 1, 40),
    ("Calculus II", 1, 2, 50),
    ("Programming II", 1, 2, 40),
    ("Discrete Mathematics", 1, 2, 50),
    ("Data Structures", 2, 1, 35),
    ("Computer Architecture", 2, 1, 35),
    ("Operating Systems", 2, 2, 30),
    ("Databases", 2, 2, 30),
]

# subject -> what it requires
PREREQUISITES = {
    "Calculus II": ["Calculus I"],
    "Programming II": ["Programming I"],
    "Discrete Mathematics": ["Algebra"],
    "Data Structures": ["Programming II", "Discrete Mathematics"],
    "Computer Architecture": ["Programming I"],
    "Operating Systems": ["Data Structures", "Computer Architecture"],
    "Databases": ["Data Structures"],
}

STUDENT = {"first_name": "Ana", "last_name": "Demo", "dni": "00000001"}


async def seed_demo(session: AsyncSession) -> Dict[str, int]:
    """Create the demo data that is missing. Returns created counts."""
    created = {"careers": 0, "subjects": 0, "placements": 0, "prerequisites": 0, "students": 0}

    career = (await session.execute(
        select(Career).where(Career.title == CAREER["title"])
    )).scalar_one_or_none()
    if career is None:
        career = Career(**CAREER)
        session.add(career)
        await session.flush()
        created["careers"] += 1

    subjects: Dict[str, Subject] = {}
    for name, year, semester, capacity in SUBJECTS:
        subject = (await session.execute(
            select(Subject).where(Subject.name == name)
        )).scalar_one_or_none()
        if subject is None:
            subject = Subject(name=name, year=year, semester=semester, capacity=capacity, current_enrollment=0)
            session.add(subject)
            await session.flush()
            created["subjects"] += 1
        subjects[name] = subject

        placement = (await session.execute(
            select(CareerSubject).where(
                CareerSubject.career_id == career.id,
                CareerSubject.subject_id == subject.id
            )
        )).scalar_one_or_none()
        if placement is None:
            session.add(CareerSubject(career_id=career.id, subject_id=subject.id, year=year, semester=semester))
            created["placements"] += 1

    for name, required in PREREQUISITES.items():
        for required_name in required:
            edge = (await session.execute(
                select(SubjectPrerequisite).where(
                    SubjectPrerequisite.subject_id == subjects[name].id,
                    SubjectPrerequisite.prerequisite_subject_id == subjects[required_name].id
                )
            )).scalar_one_or_none()
            if edge is None:
                session.add(SubjectPrerequisite(
                    subject_id=subjects[name].id,
                    prerequisite_subject_id=subjects[required_name].id
                ))
                created["prerequisites"] += 1

    student = (await session.execute(
        select(Student).where(Student.dni == STUDENT["dni"])
    )).scalar_one_or_none()
    if student is None:
        session.add(Student(current_career_id=career.id, **STUDENT))
        created["students"] += 1

    await session.commit()

    logger.info("=" * 60)
    logger.info(f"DEMO SEED: career id={career.id} created={created}")
    logger.info("=" * 60)
    return created


async def main():
    """Main entry point"""
    await init_db()
    async with AsyncSessionLocal() as session:
        await seed_demo(session)
    logger.info("✅ Demo seeding complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
