"""
enrollment_core/orm/enrollment.py
Enrollment model: the latest relationship between a student and a subject
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from enrollment_core.orm.base import BaseModel


class EnrollmentStatus(str, Enum):
    """Status of a student's enrollment in a subject"""
    ACTIVE = "active"        # currently taking the subject, holds a seat
    COMPLETED = "completed"  # passed
    DROPPED = "dropped"      # abandoned; counts as "not passed"

    @property
    def holds_seat(self) -> bool:
        return self is EnrollmentStatus.ACTIVE


class Enrollment(BaseModel):
    """
    One row per (student, subject).

    Re-enrolling after a drop is not modelled as history: the unique
    constraint below means any existing row, whatever its status,
    blocks a fresh enrollment.
    """
    __tablename__ = "enrollments"

    student_id = Column(
        Integer,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    status = Column(
        SQLEnum(EnrollmentStatus, name="enrollment_status"),
        nullable=False,
        default=EnrollmentStatus.ACTIVE,
        index=True
    )

    enrollment_date = Column(DateTime, nullable=False, default=datetime.utcnow)

    student = relationship("Student", back_populates="enrollments")
    subject = relationship("Subject", back_populates="enrollments")

    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", name="uq_enrollment_student_subject"),
        Index("ix_enrollment_subject_status", "subject_id", "status"),
    )

    def __repr__(self):
        return (
            f"<Enrollment(id={self.id}, student_id={self.student_id}, "
            f"subject_id={self.subject_id}, status={self.status})>"
        )
