"""Administrative command line for the image schema migration.

    question-images-admin status
    question-images-admin migrate
    question-images-admin validate
    question-images-admin rollback --yes
    question-images-admin release-lock
"""
import argparse
import asyncio
import json
import sys

from question_images.core.errors import AppError
from question_images.core.logging import configure_logging
from question_images.db.session import AsyncSessionLocal, engine
from question_images.services import migrator


async def _run(command: str) -> int:
    async with AsyncSessionLocal() as db:
        if command == "status":
            status = await migrator.get_migration_status(db)
            print(json.dumps(status.model_dump(), indent=2))
            return 0

        if command == "migrate":
            result = await migrator.migrate_question_images(db)
            print(json.dumps(result.model_dump(), indent=2))
            return 0 if result.success else 1

        if command == "validate":
            issues = await migrator.validate_migration(db)
            if not issues:
                print("Migration is consistent")
                return 0
            for issue in issues:
                print(f"- {issue}")
            return 1

        if command == "rollback":
            reverted = await migrator.rollback_migration(db)
            print(f"Reverted direct addressing on {reverted} images")
            return 0

        if command == "release-lock":
            released = await migrator.release_lock(db)
            print("Lock released" if released else "Lock was not held")
            return 0

    raise ValueError(f"Unknown command: {command}")


async def _main(command: str) -> int:
    try:
        return await _run(command)
    finally:
        await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="question-images-admin",
        description="Migrate legacy prompt-addressed image attempts to question/placement addressing.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show how many attempts still need migration")
    sub.add_parser("migrate", help="Backfill question_id/placement_type and resolve duplicate selections")
    sub.add_parser("validate", help="Check that the migrated data is consistent")
    rollback = sub.add_parser("rollback", help="Clear direct addressing (selection flags are not restored)")
    rollback.add_argument("--yes", action="store_true", help="Confirm the rollback")
    sub.add_parser("release-lock", help="Remove a lock left behind by a crashed run")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "rollback" and not args.yes:
        print("Refusing to roll back without --yes", file=sys.stderr)
        return 2

    configure_logging()
    try:
        return asyncio.run(_main(args.command))
    except AppError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
