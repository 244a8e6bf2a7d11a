#!/usr/bin/env python3
"""
MootCourt Seeder

Creates an admin account (if missing) and loads the exercises in
``seeds/exercises.json``. Exercises already present (by title) are skipped,
so the script is safe to run multiple times.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from mootcourt.core.security import hash_password
from mootcourt.services.storage.database import close_db, get_session, init_db
from mootcourt.services.storage.repository import TrainingRepository

PROJECT_ROOT = Path(__file__).resolve().parent.parent
EXERCISES_FILE = PROJECT_ROOT / "seeds" / "exercises.json"


async def seed(admin_username: str, admin_email: str, admin_password: str) -> int:
    """Insert the admin user and seed exercises.

    Returns:
        Exit code: 0 on success, 1 if the exercises file is missing.
    """
    await init_db()

    if not EXERCISES_FILE.is_file():
        print(f"Exercises file not found: {EXERCISES_FILE}")
        return 1

    with open(EXERCISES_FILE) as f:
        exercises = json.load(f)

    created = 0
    skipped = 0

    async with get_session() as session:
        repo = TrainingRepository(session)

        if await repo.get_user_by_username(admin_username) is None:
            admin = await repo.create_user(
                username=admin_username,
                password_hash=hash_password(admin_password),
                email=admin_email,
                is_admin=True,
            )
            print(f"  ADD   admin {admin_username} (id={admin.id})")
        else:
            print(f"  SKIP  admin {admin_username} (already exists)")

        existing = {e.title for e in await repo.list_exercises()}
        for data in exercises:
            title = data["title"]
            if title in existing:
                print(f"  SKIP  {title} (already exists)")
                skipped += 1
                continue

            exercise = await repo.create_exercise(
                title=title,
                description=data.get("description", ""),
                demo_video_url=data.get("demo_video_url", ""),
                professional_answer_url=data.get("professional_answer_url", ""),
                pdf_url=data.get("pdf_url"),
                order=data.get("order", 0),
                switch_times=data.get("switch_times", []),
            )
            print(f"  ADD   {title} (id={exercise.id})")
            created += 1

    await close_db()
    print(f"\nDone: {created} created, {skipped} skipped.")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the MootCourt database")
    parser.add_argument("--admin-username", default="admin")
    parser.add_argument("--admin-email", default="admin@example.org")
    parser.add_argument("--admin-password", required=True)
    args = parser.parse_args()

    print("MootCourt Seeder")
    print(f"Exercises file: {EXERCISES_FILE}\n")
    return asyncio.run(seed(args.admin_username, args.admin_email, args.admin_password))


if __name__ == "__main__":
    sys.exit(main())
