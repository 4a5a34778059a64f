#!/usr/bin/env python3
"""
Enrollment Engine CLI

Usage:
    enrollment-core <command> [options]
    python -m enrollment_core.cli <command> [options]

Commands:
    db          Database operations (init, seed, config)
    student     Student inspection (eligibility, graph)
    career      Career inspection (cycles)

Environment:
    DATABASE_URL    async SQLAlchemy connection string
    LOG_LEVEL       DEBUG|INFO|WARNING|ERROR
"""
import sys
import argparse
import logging
from typing import Optional

from enrollment_core.cli.db_commands import DbCommand
from enrollment_core.cli.student_commands import StudentCommand, CareerCommand


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="enrollment-core",
        description="Enrollment eligibility & correlativities CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s db init
  %(prog)s db seed
  %(prog)s student eligibility --student 1 --career 1
  %(prog)s career cycles --career 1
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without executing"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Database commands
    db_parser = subparsers.add_parser("db", help="Database operations")
    db_subparsers = db_parser.add_subparsers(dest="db_action")
    db_subparsers.add_parser("init", help="Create missing tables")
    db_subparsers.add_parser("seed", help="Seed the demo career")
    db_subparsers.add_parser("config", help="Show effective settings")

    # Student commands
    student_parser = subparsers.add_parser("student", help="Student inspection")
    student_subparsers = student_parser.add_subparsers(dest="student_action")

    eligibility_parser = student_subparsers.add_parser("eligibility", help="Eligibility of every subject in a career")
    eligibility_parser.add_argument("--student", "-s", type=int, required=True, help="Student ID")
    eligibility_parser.add_argument("--career", "-c", type=int, required=True, help="Career ID")
    eligibility_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    graph_parser = student_subparsers.add_parser("graph", help="Correlativities graph as JSON")
    graph_parser.add_argument("--student", "-s", type=int, required=True, help="Student ID")
    graph_parser.add_argument("--career", "-c", type=int, required=True, help="Career ID")

    # Career commands
    career_parser = subparsers.add_parser("career", help="Career inspection")
    career_subparsers = career_parser.add_subparsers(dest="career_action")

    cycles_parser = career_subparsers.add_parser("cycles", help="Report prerequisite cycles")
    cycles_parser.add_argument("--career", "-c", type=int, required=True, help="Career ID")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    setup_logging(parsed.log_level)

    command_map = {
        "db": DbCommand,
        "student": StudentCommand,
        "career": CareerCommand,
    }

    if parsed.command in command_map:
        handler = command_map[parsed.command](dry_run=parsed.dry_run)
        return handler.execute(parsed)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
