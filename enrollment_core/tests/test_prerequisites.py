"""
Prerequisite edge maintenance and cycle diagnostics
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.exceptions import (
    InvalidPrerequisiteError,
    PrerequisiteNotFoundError,
    SubjectNotFoundError,
)
from enrollment_core.services import prerequisite_service
from enrollment_core.services.prerequisite_service import (
    build_prerequisite_map,
    describe_cycles,
    find_prerequisite_cycles,
)


@pytest.mark.asyncio
async def test_create_and_lookup_both_directions(db: AsyncSession, factory):
    a = await factory.subject("Algebra")
    b = await factory.subject("Calculus")

    edge = await prerequisite_service.create(db, b.id, a.id)

    required = await prerequisite_service.get_by_subject(db, b.id)
    unlocked = await prerequisite_service.get_subjects_that_require(db, a.id)
    assert [e.id for e in required] == [edge.id]
    assert [e.subject_id for e in unlocked] == [b.id]
    assert await prerequisite_service.get_by_subject(db, a.id) == []


@pytest.mark.asyncio
async def test_self_edge_is_rejected(db: AsyncSession, factory):
    a = await factory.subject("Algebra")
    with pytest.raises(InvalidPrerequisiteError):
        await prerequisite_service.create(db, a.id, a.id)


@pytest.mark.asyncio
async def test_duplicate_edge_is_rejected(db: AsyncSession, factory):
    a = await factory.subject("Algebra")
    b = await factory.subject("Calculus")
    await prerequisite_service.create(db, b.id, a.id)

    with pytest.raises(InvalidPrerequisiteError) as exc_info:
        await prerequisite_service.create(db, b.id, a.id)
    assert exc_info.value.code == "INVALID_PREREQUISITE"


@pytest.mark.asyncio
async def test_unknown_endpoint_is_rejected(db: AsyncSession, factory):
    a = await factory.subject("Algebra")
    with pytest.raises(SubjectNotFoundError) as exc_info:
        await prerequisite_service.create(db, a.id, 4242)
    assert exc_info.value.subject_id == 4242


@pytest.mark.asyncio
async def test_delete_edges(db: AsyncSession, factory):
    a = await factory.subject("Algebra")
    b = await factory.subject("Calculus")
    c = await factory.subject("Physics")
    edge = await prerequisite_service.create(db, c.id, a.id)
    await prerequisite_service.create(db, c.id, b.id)

    await prerequisite_service.delete_prerequisite(db, edge.id)
    assert [e.prerequisite_subject_id for e in await prerequisite_service.get_by_subject(db, c.id)] == [b.id]

    assert await prerequisite_service.delete_by_subject(db, c.id) == 1
    assert await prerequisite_service.get_all(db) == []

    with pytest.raises(PrerequisiteNotFoundError):
        await prerequisite_service.delete_prerequisite(db, edge.id)


# =============================================================================
# Cycle detection (pure)
# =============================================================================

def test_acyclic_map_has_no_cycles():
    assert find_prerequisite_cycles({2: [1], 3: [1, 2], 4: [3]}) == []


def test_two_node_cycle():
    assert find_prerequisite_cycles({1: [2], 2: [1], 3: [1]}) == [[1, 2]]


def test_separate_cycles_sorted_by_smallest_id():
    cycles = find_prerequisite_cycles({7: [8], 8: [9], 9: [7], 2: [3], 3: [2]})
    assert cycles == [[2, 3], [7, 8, 9]]


def test_self_loop_counts_as_cycle():
    assert find_prerequisite_cycles({5: [5]}) == [[5]]


def test_describe_cycles_uses_names_when_known():
    text = describe_cycles([[1, 2]], {1: "Algebra"})
    assert text == "Algebra <-> 2"
    assert describe_cycles([]) == "no cycles"


def test_build_map_keeps_edge_order():
    class Edge:
        def __init__(self, subject_id, prerequisite_subject_id):
            self.subject_id = subject_id
            self.prerequisite_subject_id = prerequisite_subject_id

    prerequisite_map = build_prerequisite_map([Edge(3, 2), Edge(3, 1), Edge(2, 1)])
    assert prerequisite_map == {3: [2, 1], 2: [1]}
