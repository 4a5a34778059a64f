"""
Database CLI Commands

Database operations: init, seed, config
"""
import asyncio

from enrollment_core.config.settings import settings


class DbCommand:
    """Database CLI command handler."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def execute(self, args) -> int:
        """Execute database command."""
        if args.db_action == "init":
            return self._init(args)
        elif args.db_action == "seed":
            return self._seed(args)
        elif args.db_action == "config":
            return self._config(args)
        else:
            print("Error: Unknown database action")
            return 1

    def _init(self, args) -> int:
        """Create missing tables."""
        print("=== Database Init ===")
        if self.dry_run:
            print(f"[DRY RUN] Would create tables on {settings.DATABASE_URL}")
            return 0

        from enrollment_core.database import init_db, close_db

        async def _run():
            try:
                await init_db()
            finally:
                await close_db()

        try:
            asyncio.run(_run())
        except Exception as e:
            print(f"Init failed: {e}")
            return 1
        print("✓ Tables created")
        return 0

    def _seed(self, args) -> int:
        """Seed the demo career."""
        print("=== Demo Seed ===")
        if self.dry_run:
            print("[DRY RUN] Would seed demo career, subjects, prerequisites and student")
            return 0

        from enrollment_core.database import AsyncSessionLocal, init_db, close_db
        from enrollment_core.seed.seed_demo import seed_demo

        async def _run():
            try:
                await init_db()
                async with AsyncSessionLocal() as session:
                    return await seed_demo(session)
            finally:
                await close_db()

        try:
            created = asyncio.run(_run())
        except Exception as e:
            print(f"Seed failed: {e}")
            return 1

        for kind, count in created.items():
            print(f"  {kind}: {count} created")
        return 0

    def _config(self, args) -> int:
        """Show effective settings."""
        print("=== Configuration ===")
        for name, value in sorted(settings.as_dict().items()):
            print(f"  {name} = {value}")
        return 0
