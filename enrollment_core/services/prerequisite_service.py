"""
Prerequisite Service

Lookups over the correlativity edges plus the edge maintenance writes.

An edge (subject_id, prerequisite_subject_id) means "subject_id requires
prerequisite_subject_id". Multiple edges for one subject are ANDed.
The store never enforces acyclicity; `find_prerequisite_cycles` reports
cycles as a diagnostic instead.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.exceptions import (
    InvalidPrerequisiteError,
    PrerequisiteNotFoundError,
    SubjectNotFoundError,
)
from enrollment_core.orm.prerequisite import SubjectPrerequisite
from enrollment_core.services.catalog_service import get_subjects_by_ids

logger = logging.getLogger(__name__)


# ================= READS =================

async def get_all(db: AsyncSession) -> List[SubjectPrerequisite]:
    """Every prerequisite edge in the system, oldest first."""
    result = await db.execute(
        select(SubjectPrerequisite).order_by(SubjectPrerequisite.created_at, SubjectPrerequisite.id)
    )
    return list(result.scalars().all())


async def get_by_subject(db: AsyncSession, subject_id: int) -> List[SubjectPrerequisite]:
    """Edges whose subject is `subject_id`, i.e. what it requires."""
    result = await db.execute(
        select(SubjectPrerequisite)
        .where(SubjectPrerequisite.subject_id == subject_id)
        .order_by(SubjectPrerequisite.id)
    )
    return list(result.scalars().all())


async def get_subjects_that_require(db: AsyncSession, prerequisite_id: int) -> List[SubjectPrerequisite]:
    """Edges whose prerequisite is `prerequisite_id`, i.e. what it unlocks."""
    result = await db.execute(
        select(SubjectPrerequisite)
        .where(SubjectPrerequisite.prerequisite_subject_id == prerequisite_id)
        .order_by(SubjectPrerequisite.id)
    )
    return list(result.scalars().all())


# ================= WRITES =================

async def create(db: AsyncSession, subject_id: int, prerequisite_id: int) -> SubjectPrerequisite:
    """
    Create the edge "subject_id requires prerequisite_id".

    Raises:
        InvalidPrerequisiteError: self-edge or duplicate edge
        SubjectNotFoundError: either endpoint does not exist
    """
    if subject_id == prerequisite_id:
        raise InvalidPrerequisiteError(
            "A subject cannot be its own prerequisite",
            details={"subject_id": subject_id}
        )

    subjects = await get_subjects_by_ids(db, [subject_id, prerequisite_id])
    for required_id in (subject_id, prerequisite_id):
        if required_id not in subjects:
            raise SubjectNotFoundError(required_id)

    edge = SubjectPrerequisite(subject_id=subject_id, prerequisite_subject_id=prerequisite_id)
    db.add(edge)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise InvalidPrerequisiteError(
            f"Subject {subject_id} already requires subject {prerequisite_id}",
            details={"subject_id": subject_id, "prerequisite_subject_id": prerequisite_id}
        )
    await db.refresh(edge)

    logger.info(f"[PREREQUISITE CREATED] id={edge.id} subject={subject_id} requires={prerequisite_id}")
    return edge


async def delete_prerequisite(db: AsyncSession, prerequisite_id: int) -> None:
    edge = await db.get(SubjectPrerequisite, prerequisite_id)
    if edge is None:
        raise PrerequisiteNotFoundError(prerequisite_id)

    await db.delete(edge)
    await db.commit()
    logger.info(f"[PREREQUISITE DELETED] id={prerequisite_id}")


async def delete_by_subject(db: AsyncSession, subject_id: int) -> int:
    """Drop every requirement of a subject. Returns the number of edges removed."""
    result = await db.execute(
        delete(SubjectPrerequisite).where(SubjectPrerequisite.subject_id == subject_id)
    )
    await db.commit()
    logger.info(f"[PREREQUISITES CLEARED] subject={subject_id} removed={result.rowcount}")
    return result.rowcount


# ================= PURE HELPERS =================

def edges_within(
    edges: Iterable[SubjectPrerequisite],
    subject_ids: Set[int]
) -> List[SubjectPrerequisite]:
    """Keep only the edges whose both endpoints are in `subject_ids`."""
    return [
        edge for edge in edges
        if edge.subject_id in subject_ids and edge.prerequisite_subject_id in subject_ids
    ]


def build_prerequisite_map(edges: Iterable[SubjectPrerequisite]) -> Dict[int, List[int]]:
    """
    Adjacency list: subject id -> prerequisite subject ids, in edge order.
    """
    prerequisite_map: Dict[int, List[int]] = defaultdict(list)
    for edge in edges:
        prerequisite_map[edge.subject_id].append(edge.prerequisite_subject_id)
    return dict(prerequisite_map)


def find_prerequisite_cycles(prerequisite_map: Dict[int, List[int]]) -> List[List[int]]:
    """
    Strongly connected groups of subjects that require each other.

    Uses Tarjan's algorithm. Returns each cycle as a sorted list of subject
    ids (groups of size > 1, or a single subject that requires itself),
    sorted by their smallest id. Empty when the graph is acyclic.
    """
    nodes: Set[int] = set(prerequisite_map)
    for prereq_ids in prerequisite_map.values():
        nodes.update(prereq_ids)

    index_of: Dict[int, int] = {}
    lowlink: Dict[int, int] = {}
    on_stack: Set[int] = set()
    stack: List[int] = []
    components: List[List[int]] = []
    counter = [0]

    def strongconnect(node: int) -> None:
        index_of[node] = lowlink[node] = counter[0]
        counter[0] += 1
        stack.append(node)
        on_stack.add(node)

        for neighbour in sorted(prerequisite_map.get(node, [])):
            if neighbour not in index_of:
                strongconnect(neighbour)
                lowlink[node] = min(lowlink[node], lowlink[neighbour])
            elif neighbour in on_stack:
                lowlink[node] = min(lowlink[node], index_of[neighbour])

        if lowlink[node] == index_of[node]:
            component = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member == node:
                    break
            components.append(component)

    for node in sorted(nodes):
        if node not in index_of:
            strongconnect(node)

    cycles = []
    for component in components:
        if len(component) > 1:
            cycles.append(sorted(component))
        else:
            only = component[0]
            if only in prerequisite_map.get(only, []):
                cycles.append([only])

    return sorted(cycles, key=lambda cycle: cycle[0])


def describe_cycles(cycles: List[List[int]], names: Optional[Dict[int, str]] = None) -> str:
    """Human-readable cycle listing for logs and the CLI."""
    if not cycles:
        return "no cycles"
    names = names or {}
    rendered = []
    for cycle in cycles:
        labels = [names.get(subject_id, str(subject_id)) for subject_id in cycle]
        rendered.append(" <-> ".join(labels))
    return "; ".join(rendered)
