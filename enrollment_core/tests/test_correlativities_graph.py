"""
Correlativities Graph Test Suite

Node states, edge direction and enablement, career scoping, cycle
reporting and store-failure handling.
"""
import logging
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_core.exceptions import GraphLoadError
from enrollment_core.orm.enrollment import EnrollmentStatus
from enrollment_core.services.correlativities_service import (
    SubjectNodeState,
    build_graph,
    get_graph_for_student,
)
from enrollment_core.services.eligibility_service import SubjectEligibilityStatus


@pytest.fixture
async def chain(factory):
    """Algebra -> Calculus -> Physics, all in one career."""
    career = await factory.career()
    a = await factory.subject("Algebra", career=career)
    b = await factory.subject("Calculus", career=career, semester=2)
    c = await factory.subject("Physics", career=career, year=2)
    await factory.requires(b, a)
    await factory.requires(c, b)
    student = await factory.student()
    return career, student, (a, b, c)


def test_node_state_mapping_is_total():
    for status in SubjectEligibilityStatus:
        assert isinstance(SubjectNodeState.from_eligibility(status), SubjectNodeState)
    assert SubjectNodeState.from_eligibility(SubjectEligibilityStatus.ALREADY_PASSED) == SubjectNodeState.COMPLETED


@pytest.mark.asyncio
async def test_nodes_and_edges_for_chain(db: AsyncSession, factory, chain):
    career, student, (a, b, c) = chain
    await factory.record(student, a, EnrollmentStatus.COMPLETED)
    await factory.record(student, b, EnrollmentStatus.ACTIVE)

    graph = await get_graph_for_student(db, student.id, career.id)

    assert [node.id for node in graph.nodes] == [a.id, b.id, c.id]
    assert graph.node(a.id).state == SubjectNodeState.COMPLETED
    assert graph.node(b.id).state == SubjectNodeState.ENROLLED
    assert graph.node(c.id).state == SubjectNodeState.LOCKED
    assert graph.node(c.id).prerequisites == [b.id]

    edges = {(edge.source, edge.target): edge.is_enabled for edge in graph.edges}
    assert edges == {(a.id, b.id): True, (b.id, c.id): False}
    assert graph.cycles == []


@pytest.mark.asyncio
async def test_edge_source_is_the_prerequisite(db: AsyncSession, factory, chain):
    career, student, (a, b, _) = chain

    graph = await build_graph(db, student.id, career.id)

    first = graph.edges[0]
    assert first.source == a.id
    assert first.target == b.id
    assert first.to_dict()["is_enabled"] is False


@pytest.mark.asyncio
async def test_out_of_career_edge_is_dropped_but_listed_on_node(db: AsyncSession, factory, chain):
    career, student, (a, _, _) = chain
    elective = await factory.subject("Elective", career=None)
    await factory.requires(a, elective)

    graph = await build_graph(db, student.id, career.id)

    assert all(elective.id not in (edge.source, edge.target) for edge in graph.edges)
    assert graph.node(a.id).state == SubjectNodeState.AVAILABLE
    assert graph.node(a.id).prerequisites == [elective.id]


@pytest.mark.asyncio
async def test_graph_is_idempotent(db: AsyncSession, chain):
    career, student, _ = chain

    first = await build_graph(db, student.id, career.id)
    second = await build_graph(db, student.id, career.id)

    assert first.to_dict() == second.to_dict()


@pytest.mark.asyncio
async def test_unknown_career_gives_empty_graph(db: AsyncSession, factory):
    student = await factory.student()
    graph = await build_graph(db, student.id, 9999)
    assert graph.nodes == []
    assert graph.edges == []


@pytest.mark.asyncio
async def test_cycle_is_reported_and_members_stay_locked(db: AsyncSession, factory, caplog):
    career = await factory.career()
    a = await factory.subject("Logic", career=career)
    b = await factory.subject("Sets", career=career)
    await factory.requires(a, b)
    await factory.requires(b, a)
    student = await factory.student()

    with caplog.at_level(logging.WARNING):
        graph = await build_graph(db, student.id, career.id, detect_cycles=True)

    assert graph.cycles == [sorted([a.id, b.id])]
    assert graph.node(a.id).state == SubjectNodeState.LOCKED
    assert graph.node(b.id).state == SubjectNodeState.LOCKED
    assert "PREREQUISITE CYCLE" in caplog.text


@pytest.mark.asyncio
async def test_cycle_detection_can_be_disabled(db: AsyncSession, factory):
    career = await factory.career()
    a = await factory.subject("Logic", career=career)
    b = await factory.subject("Sets", career=career)
    await factory.requires(a, b)
    await factory.requires(b, a)
    student = await factory.student()

    graph = await build_graph(db, student.id, career.id, detect_cycles=False)

    assert graph.cycles == []
    assert len(graph.edges) == 2


@pytest.mark.asyncio
async def test_store_failure_aborts_the_build(db: AsyncSession, chain):
    career, student, _ = chain
    failure = OperationalError("SELECT", {}, Exception("database is locked"))

    with patch(
        "enrollment_core.services.correlativities_service.get_enrollment_map",
        new=AsyncMock(side_effect=failure)
    ):
        with pytest.raises(GraphLoadError) as exc_info:
            await build_graph(db, student.id, career.id)

    assert exc_info.value.status_code == 503
    assert exc_info.value.cause is failure
