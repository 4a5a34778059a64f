"""
enrollment_core/exceptions.py
Typed exceptions for the enrollment eligibility & correlativities engine

Categories:
- Validation failures (bad or missing identifiers, malformed edges)
- Not-found failures (subject / enrollment / prerequisite absent)
- Capacity conflicts (subject full at the moment of the seat claim)
- Write conflicts (record changed under a guarded status change or delete)
- Store failures surfaced as a single aggregate on graph builds
"""
from typing import Any, Dict, Optional


class EnrollmentCoreError(Exception):
    """Base exception for the enrollment engine"""
    status_code: int = 500
    code: str = "ENROLLMENT_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class EnrollmentValidationError(EnrollmentCoreError):
    """
    Raised when an enrollment request is malformed.

    Examples:
    - Missing student id or subject id on submit
    - Unknown enrollment status
    """
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Invalid enrollment request", details: Optional[Dict] = None):
        super().__init__(message, details=details)


class SubjectNotFoundError(EnrollmentCoreError):
    status_code = 404
    code = "SUBJECT_NOT_FOUND"

    def __init__(self, subject_id: int):
        self.subject_id = subject_id
        super().__init__(f"Subject {subject_id} not found", details={"subject_id": subject_id})


class EnrollmentNotFoundError(EnrollmentCoreError):
    status_code = 404
    code = "ENROLLMENT_NOT_FOUND"

    def __init__(self, enrollment_id: int):
        self.enrollment_id = enrollment_id
        super().__init__(f"Enrollment {enrollment_id} not found", details={"enrollment_id": enrollment_id})


class PrerequisiteNotFoundError(EnrollmentCoreError):
    status_code = 404
    code = "PREREQUISITE_NOT_FOUND"

    def __init__(self, prerequisite_id: int):
        self.prerequisite_id = prerequisite_id
        super().__init__(
            f"Prerequisite {prerequisite_id} not found",
            details={"prerequisite_id": prerequisite_id}
        )


class CapacityExceededError(EnrollmentCoreError):
    """
    Raised when a subject has no free seat at the moment the seat is claimed.

    Only raised by writes (enroll / re-activation), never by eligibility checks.
    """
    status_code = 409
    code = "CAPACITY_EXCEEDED"

    def __init__(self, subject_id: int, capacity: Optional[int] = None):
        self.subject_id = subject_id
        message = f"Subject {subject_id} has reached its maximum capacity"
        if capacity is not None:
            message += f" ({capacity} seats)"
        super().__init__(message, details={"subject_id": subject_id, "capacity": capacity})


class DuplicateEnrollmentError(EnrollmentCoreError):
    """Raised when a (student, subject) record already exists."""
    status_code = 409
    code = "DUPLICATE_ENROLLMENT"

    def __init__(self, student_id: int, subject_id: int):
        self.student_id = student_id
        self.subject_id = subject_id
        super().__init__(
            f"Student {student_id} already has an enrollment record for subject {subject_id}",
            details={"student_id": student_id, "subject_id": subject_id}
        )


class EnrollmentConflictError(EnrollmentCoreError):
    """
    Raised when an enrollment keeps changing under a status change or
    delete, so the guarded write never matches.
    """
    status_code = 409
    code = "ENROLLMENT_CONFLICT"

    def __init__(self, enrollment_id: int):
        self.enrollment_id = enrollment_id
        super().__init__(
            f"Enrollment {enrollment_id} was modified concurrently, retry the request",
            details={"enrollment_id": enrollment_id}
        )


class InvalidPrerequisiteError(EnrollmentCoreError):
    """
    Raised when a prerequisite edge cannot be created.

    Examples:
    - A subject requiring itself
    - The same edge created twice
    """
    status_code = 400
    code = "INVALID_PREREQUISITE"

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, details=details)


class GraphLoadError(EnrollmentCoreError):
    """
    Raised when any store read fails while building a correlativities graph.

    Keeps the underlying error as `cause`; partial graphs are never returned.
    """
    status_code = 503
    code = "GRAPH_LOAD_FAILED"

    def __init__(self, student_id: int, career_id: int, cause: Optional[BaseException] = None):
        self.student_id = student_id
        self.career_id = career_id
        self.cause = cause
        super().__init__(
            f"Could not load correlativities graph for student {student_id} in career {career_id}",
            details={"student_id": student_id, "career_id": career_id}
        )
