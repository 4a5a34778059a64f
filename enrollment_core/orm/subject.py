"""
enrollment_core/orm/subject.py
Subject model: a class offered to students, with a bounded number of seats
"""
from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from enrollment_core.orm.base import BaseModel


class Subject(BaseModel):
    """
    Stores subjects (reusable across careers).

    `current_enrollment` counts the seats held by active enrollments.
    It is only moved by the enrollment service, with a conditional UPDATE,
    so it never exceeds `capacity`.
    """
    __tablename__ = "subjects"

    name = Column(String(200), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False)
    current_enrollment = Column(Integer, nullable=False, default=0)

    # Relationships
    career_links = relationship(
        "CareerSubject",
        back_populates="subject",
        cascade="all, delete-orphan"
    )

    enrollments = relationship(
        "Enrollment",
        back_populates="subject",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("year >= 1", name="ck_subject_year_positive"),
        CheckConstraint("semester IN (1, 2)", name="ck_subject_semester"),
        CheckConstraint("capacity > 0", name="ck_subject_capacity_positive"),
        CheckConstraint("current_enrollment >= 0", name="ck_subject_enrollment_non_negative"),
    )

    @property
    def has_capacity(self) -> bool:
        return self.current_enrollment < self.capacity

    @property
    def available_spots(self) -> int:
        return self.capacity - self.current_enrollment

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.name}')>"
