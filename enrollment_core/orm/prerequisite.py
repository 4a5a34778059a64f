"""
enrollment_core/orm/prerequisite.py
Prerequisite ("correlativity") edges between subjects
"""
from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from enrollment_core.orm.base import BaseModel


class SubjectPrerequisite(BaseModel):
    """
    Directed edge: `subject_id` requires `prerequisite_subject_id`.

    Several rows for the same subject are ANDed together. Acyclicity is
    not enforced by the store.
    """
    __tablename__ = "subject_prerequisites"

    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    prerequisite_subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    subject = relationship("Subject", foreign_keys=[subject_id])
    prerequisite_subject = relationship("Subject", foreign_keys=[prerequisite_subject_id])

    __table_args__ = (
        UniqueConstraint("subject_id", "prerequisite_subject_id", name="uq_subject_prerequisite"),
    )

    def __repr__(self):
        return (
            f"<SubjectPrerequisite(subject_id={self.subject_id}, "
            f"prerequisite_subject_id={self.prerequisite_subject_id})>"
        )
