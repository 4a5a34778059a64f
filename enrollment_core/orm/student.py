"""
enrollment_core/orm/student.py
Student model
"""
from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship

from enrollment_core.orm.base import BaseModel


class Student(BaseModel):
    __tablename__ = "students"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, index=True)
    dni = Column(String(20), nullable=False, unique=True, index=True)
    birth_date = Column(Date, nullable=True)
    current_career_id = Column(
        Integer,
        ForeignKey("careers.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    enrollments = relationship(
        "Enrollment",
        back_populates="student",
        cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.full_name}')>"
