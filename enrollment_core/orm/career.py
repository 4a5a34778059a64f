"""
enrollment_core/orm/career.py
Career (degree program) and the career <-> subject placement table
"""
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from enrollment_core.orm.base import BaseModel


class Career(BaseModel):
    """
    Stores degree programs.

    A career owns a set of subjects through CareerSubject; that set is
    the node set of a student's correlativities graph.
    """
    __tablename__ = "careers"

    title = Column(String(200), nullable=False, unique=True)
    total_years = Column(Integer, nullable=False)
    total_semesters = Column(Integer, nullable=False)

    subject_links = relationship(
        "CareerSubject",
        back_populates="career",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Career(id={self.id}, title='{self.title}')>"


class CareerSubject(BaseModel):
    """
    Places a subject inside a career at a given (year, semester).

    The same subject may appear in several careers with different
    placements, so the placement lives here and not on Subject.
    """
    __tablename__ = "career_subjects"

    career_id = Column(
        Integer,
        ForeignKey("careers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)

    career = relationship("Career", back_populates="subject_links")
    subject = relationship("Subject", back_populates="career_links")

    __table_args__ = (
        UniqueConstraint("career_id", "subject_id", name="uq_career_subject"),
        Index("ix_career_subject_placement", "career_id", "year", "semester"),
    )

    def __repr__(self):
        return (
            f"<CareerSubject(career_id={self.career_id}, "
            f"subject_id={self.subject_id}, year={self.year}, semester={self.semester})>"
        )
