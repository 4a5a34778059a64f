"""
Student & Career CLI Commands

Read-only inspection: eligibility table, graph summary, prerequisite cycles
"""
import asyncio
import json


class StudentCommand:
    """Student CLI command handler."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def execute(self, args) -> int:
        if args.student_action == "eligibility":
            return self._run(self._eligibility(args.student, args.career, args.json))
        elif args.student_action == "graph":
            return self._run(self._graph(args.student, args.career))
        else:
            print("Error: Unknown student action")
            return 1

    def _run(self, coro) -> int:
        try:
            asyncio.run(coro)
        except Exception as e:
            print(f"Error: {e}")
            return 1
        return 0

    async def _eligibility(self, student_id: int, career_id: int, as_json: bool = False) -> None:
        from enrollment_core.database import AsyncSessionLocal, close_db
        from enrollment_core.services.eligibility_service import get_eligibility_for_student

        try:
            async with AsyncSessionLocal() as db:
                eligibility = await get_eligibility_for_student(db, student_id, career_id)
        finally:
            await close_db()

        if as_json:
            print(json.dumps([item.to_dict() for item in eligibility.values()], indent=2))
            return

        print(f"=== Eligibility: student {student_id}, career {career_id} ===")
        for item in eligibility.values():
            line = (
                f"  [{item.status.value:<18}] {item.subject_name:<30} "
                f"{item.current_enrollment}/{item.capacity}"
            )
            if item.missing_prerequisites:
                line += "  missing: " + ", ".join(s.name for s in item.missing_prerequisites)
            print(line)

    async def _graph(self, student_id: int, career_id: int) -> None:
        from enrollment_core.database import AsyncSessionLocal, close_db
        from enrollment_core.services.correlativities_service import build_graph

        try:
            async with AsyncSessionLocal() as db:
                graph = await build_graph(db, student_id, career_id)
        finally:
            await close_db()

        print(json.dumps(graph.to_dict(), indent=2))


class CareerCommand:
    """Career CLI command handler."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def execute(self, args) -> int:
        if args.career_action == "cycles":
            try:
                found = asyncio.run(self._cycles(args.career))
            except Exception as e:
                print(f"Error: {e}")
                return 1
            # exit code 2: cycles found
            return 2 if found else 0
        print("Error: Unknown career action")
        return 1

    async def _cycles(self, career_id: int) -> bool:
        from enrollment_core.database import AsyncSessionLocal, close_db
        from enrollment_core.services import catalog_service, prerequisite_service

        try:
            async with AsyncSessionLocal() as db:
                subjects = await catalog_service.get_subjects_for_career(db, career_id)
                edges = await prerequisite_service.get_all(db)
        finally:
            await close_db()

        names = {subject.id: subject.name for subject in subjects}
        visible = prerequisite_service.edges_within(edges, set(names))
        cycles = prerequisite_service.find_prerequisite_cycles(
            prerequisite_service.build_prerequisite_map(visible)
        )
        print(f"=== Prerequisite cycles: career {career_id} ===")
        print(f"  {prerequisite_service.describe_cycles(cycles, names)}")
        return bool(cycles)
