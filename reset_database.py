#!/usr/bin/env python3
"""
Database reset script for the vaccination booking backend.

Drops every table, rebuilds the schema from the Alembic migrations and,
optionally, creates the first admin account (POST /api/auth/users needs an
existing admin). Only local SQLite databases are accepted.

Usage:
    python reset_database.py
    python reset_database.py --admin-email admin@pharmacie.be --admin-name "Admin"
"""

import argparse
import getpass
import os
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parent / "backend"

# Add backend/src to path
sys.path.insert(0, str(BACKEND_DIR / "src"))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import inspect, text  # noqa: E402

from core.config import DATABASE_URL  # noqa: E402
from core.database import Base, engine, get_db_context  # noqa: E402
import models  # noqa: E402,F401  (registers every table on Base.metadata)
from services.user_service import UserService  # noqa: E402


def reset_database() -> bool:
    """Drop all tables and rebuild them from the migrations."""

    print("🔄 Resetting vaccination booking database...")
    print(f"Database URL: {DATABASE_URL}")

    # Confirm action (in case someone runs this against a shared database)
    if not DATABASE_URL.startswith("sqlite"):
        print("❌ ERROR: This script only works with a local SQLite database!")
        return False

    print("🗑️  Dropping existing tables...")
    Base.metadata.drop_all(bind=engine)
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))

    print("🏗️  Running migrations...")
    alembic_cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    command.upgrade(alembic_cfg, "head")

    table_names = set(inspect(engine).get_table_names())
    print("📋 Created tables:")
    missing = []
    for table in sorted(Base.metadata.tables):
        if table in table_names:
            print(f"  ✅ {table}")
        else:
            print(f"  ❌ {table} (missing)")
            missing.append(table)

    if missing:
        print(f"❌ {len(missing)} table(s) were not created")
        return False
    return True


def create_admin(email: str, full_name: str) -> None:
    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    with get_db_context() as db:
        user = UserService.create_user(db, email, password, full_name, role="admin")
        print(f"👤 Created admin user {user.email} (id {user.id})")


def main() -> int:
    parser = argparse.ArgumentParser(description="Reset the local database")
    parser.add_argument("--admin-email", help="Create an admin account with this email")
    parser.add_argument("--admin-name", default="Administrateur", help="Full name of the admin")
    args = parser.parse_args()

    if not reset_database():
        return 1
    if args.admin_email:
        create_admin(args.admin_email, args.admin_name)
    print("🎉 Database reset complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
