from .base import Base, BaseModel

# Catalog
from .career import Career, CareerSubject
from .subject import Subject
from .student import Student

# Correlativities + enrollment
from .prerequisite import SubjectPrerequisite
from .enrollment import Enrollment, EnrollmentStatus

__all__ = [
    "Base",
    "BaseModel",
    "Career",
    "CareerSubject",
    "Subject",
    "Student",
    "SubjectPrerequisite",
    "Enrollment",
    "EnrollmentStatus",
]
