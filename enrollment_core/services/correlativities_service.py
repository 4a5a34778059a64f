"""
Correlativities Graph Service

Builds the full prerequisite graph of a career for one student:
- nodes: the career's subjects, each with a computed state
- edges: prerequisite -> subject, flagged enabled once the prerequisite is passed

Read-only. Any store failure aborts the whole build with GraphLoadError.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.config.settings import settings
from enrollment_core.exceptions import GraphLoadError
from enrollment_core.orm.enrollment import Enrollment
from enrollment_core.services import catalog_service, prerequisite_service
from enrollment_core.services.eligibility_service import (
    SubjectEligibilityStatus,
    compute_state,
    get_enrollment_map,
    is_completed,
)

logger = logging.getLogger(__name__)


class SubjectNodeState(str, Enum):
    """Visual state of a graph node"""
    COMPLETED = "COMPLETED"
    ENROLLED = "ENROLLED"
    LOCKED = "LOCKED"
    AVAILABLE = "AVAILABLE"

    @classmethod
    def from_eligibility(cls, status: SubjectEligibilityStatus) -> "SubjectNodeState":
        return _NODE_STATE_BY_STATUS[status]


_NODE_STATE_BY_STATUS = {
    SubjectEligibilityStatus.ALREADY_PASSED: SubjectNodeState.COMPLETED,
    SubjectEligibilityStatus.CURRENTLY_ENROLLED: SubjectNodeState.ENROLLED,
    SubjectEligibilityStatus.LOCKED: SubjectNodeState.LOCKED,
    SubjectEligibilityStatus.AVAILABLE: SubjectNodeState.AVAILABLE,
}


@dataclass
class SubjectNode:
    id: int
    name: str
    year: int
    semester: int
    state: SubjectNodeState
    capacity: int
    current_enrollment: int
    prerequisites: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "year": self.year,
            "semester": self.semester,
            "state": self.state.value,
            "capacity": self.capacity,
            "current_enrollment": self.current_enrollment,
            "prerequisites": list(self.prerequisites),
        }


@dataclass
class SubjectEdge:
    id: int
    source: int  # prerequisite_subject_id
    target: int  # subject_id
    is_enabled: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "is_enabled": self.is_enabled,
        }


@dataclass
class CorrelativitiesGraph:
    nodes: List[SubjectNode] = field(default_factory=list)
    edges: List[SubjectEdge] = field(default_factory=list)
    cycles: List[List[int]] = field(default_factory=list)

    def node(self, subject_id: int) -> Optional[SubjectNode]:
        for node in self.nodes:
            if node.id == subject_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "cycles": [list(cycle) for cycle in self.cycles],
        }


def calculate_node_state(
    enrollment: Optional[Enrollment],
    prerequisite_ids: List[int],
    enrollments_by_subject: Dict[int, Enrollment]
) -> SubjectNodeState:
    return SubjectNodeState.from_eligibility(
        compute_state(enrollment, prerequisite_ids, enrollments_by_subject)
    )


async def build_graph(
    db: AsyncSession,
    student_id: int,
    career_id: int,
    detect_cycles: Optional[bool] = None
) -> CorrelativitiesGraph:
    """
    Build the correlativities graph of a career for a student.

    Steps:
    1. Subjects of the career define the node set
    2. Only edges with both ends in the node set are kept
    3. The student's enrollments are read once into a map
    4. Node state follows the eligibility decision over the visible edges;
       `prerequisites` lists every requirement of the subject
    5. An edge is enabled when its source (the prerequisite) is completed

    Raises:
        GraphLoadError: if any store read fails
    """
    if detect_cycles is None:
        detect_cycles = settings.FEATURE_CYCLE_DIAGNOSTICS

    try:
        subjects = await catalog_service.get_subjects_for_career(db, career_id)
        all_edges = await prerequisite_service.get_all(db)
        enrollments_by_subject = await get_enrollment_map(db, student_id)
    except SQLAlchemyError as e:
        logger.error(f"[GRAPH LOAD FAILED] student={student_id} career={career_id}: {e}")
        raise GraphLoadError(student_id, career_id, cause=e) from e

    subject_ids = {subject.id for subject in subjects}
    visible_edges = prerequisite_service.edges_within(all_edges, subject_ids)
    visible_map = prerequisite_service.build_prerequisite_map(visible_edges)
    raw_map = prerequisite_service.build_prerequisite_map(all_edges)

    nodes = []
    for subject in subjects:
        state = calculate_node_state(
            enrollments_by_subject.get(subject.id),
            visible_map.get(subject.id, []),
            enrollments_by_subject,
        )
        nodes.append(SubjectNode(
            id=subject.id,
            name=subject.name,
            year=subject.year,
            semester=subject.semester,
            state=state,
            capacity=subject.capacity,
            current_enrollment=subject.current_enrollment,
            prerequisites=list(raw_map.get(subject.id, [])),
        ))

    edges = [
        SubjectEdge(
            id=edge.id,
            source=edge.prerequisite_subject_id,
            target=edge.subject_id,
            is_enabled=is_completed(enrollments_by_subject.get(edge.prerequisite_subject_id)),
        )
        for edge in visible_edges
    ]

    cycles: List[List[int]] = []
    if detect_cycles:
        cycles = prerequisite_service.find_prerequisite_cycles(visible_map)
        if cycles:
            names = {subject.id: subject.name for subject in subjects}
            logger.warning(
                f"[PREREQUISITE CYCLE] career={career_id}: "
                f"{prerequisite_service.describe_cycles(cycles, names)}"
            )

    logger.debug(
        f"[GRAPH] student={student_id} career={career_id} "
        f"nodes={len(nodes)} edges={len(edges)} cycles={len(cycles)}"
    )
    return CorrelativitiesGraph(nodes=nodes, edges=edges, cycles=cycles)


async def get_graph_for_student(db: AsyncSession, student_id: int, career_id: int) -> CorrelativitiesGraph:
    return await build_graph(db, student_id, career_id)
