"""
Enrollment & Correlativities API Schemas (Pydantic)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from enrollment_core.orm.enrollment import EnrollmentStatus


# ================= REQUESTS =================

class EnrollmentCreate(BaseModel):
    """Request schema for a single enrollment."""
    student_id: int = Field(..., gt=0)
    subject_id: int = Field(..., gt=0)
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE


class BulkEnrollmentRequest(BaseModel):
    """Request schema for enrolling in several subjects from one selection."""
    student_id: int = Field(..., gt=0)
    subject_ids: List[int] = Field(..., min_length=1)

    @field_validator("subject_ids")
    @classmethod
    def positive_ids(cls, v):
        if any(subject_id <= 0 for subject_id in v):
            raise ValueError("subject ids must be positive")
        return v


class StatusChangeRequest(BaseModel):
    status: EnrollmentStatus


class PrerequisiteCreate(BaseModel):
    subject_id: int = Field(..., gt=0)
    prerequisite_subject_id: int = Field(..., gt=0)


# ================= RESPONSES =================

class SubjectSummary(BaseModel):
    id: int
    name: str
    year: int
    semester: int

    model_config = ConfigDict(from_attributes=True)


class EnrollmentResponse(BaseModel):
    id: int
    student_id: int
    subject_id: int
    status: EnrollmentStatus
    enrollment_date: datetime

    model_config = ConfigDict(from_attributes=True)


class SubjectEligibilityResponse(BaseModel):
    subject_id: int
    subject_name: str
    status: str  # ALREADY_PASSED / CURRENTLY_ENROLLED / LOCKED / AVAILABLE
    missing_prerequisites: List[SubjectSummary] = []
    has_capacity: bool
    available_spots: int
    current_enrollment: int
    capacity: int


class SubjectNodeResponse(BaseModel):
    id: int
    name: str
    year: int
    semester: int
    state: str  # COMPLETED / ENROLLED / LOCKED / AVAILABLE
    capacity: int
    current_enrollment: int
    prerequisites: List[int] = []


class SubjectEdgeResponse(BaseModel):
    id: int
    source: int
    target: int
    is_enabled: bool


class CorrelativitiesGraphResponse(BaseModel):
    nodes: List[SubjectNodeResponse]
    edges: List[SubjectEdgeResponse]
    cycles: List[List[int]] = []


class CanEnrollResponse(BaseModel):
    student_id: int
    subject_id: int
    can_enroll: bool


class BulkItemResponse(BaseModel):
    subject_id: int
    subject_name: Optional[str] = None
    outcome: str  # enrolled / rejected / failed
    reason: Optional[str] = None
    enrollment_id: Optional[int] = None


class InvalidSubject(BaseModel):
    id: int
    name: Optional[str] = None


class BulkEnrollmentResponse(BaseModel):
    success_count: int
    failure_count: int
    invalid_subjects: List[InvalidSubject] = []
    results: List[BulkItemResponse] = []


class PrerequisiteResponse(BaseModel):
    id: int
    subject_id: int
    prerequisite_subject_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlacementCreate(BaseModel):
    subject_id: int = Field(..., gt=0)
    year: int = Field(..., ge=1)
    semester: int = Field(..., ge=1, le=2)


class SubjectCapacityResponse(BaseModel):
    subject_id: int
    capacity: int
    current_enrollment: int
    available_spots: int
