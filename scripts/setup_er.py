#!/usr/bin/env python3
# scripts/setup_er.py
"""
ER setup: bed slots and staff accounts.
This script is safe to run many times (idempotent).

Examples:
  # Create any missing bed slots 1..38
  python -m scripts.setup_er --ensure-beds

  # Create (or reset) a staff login
  python -m scripts.setup_er --ensure-user --username admin --password "Admin@12345" \
      --full-name "ER Admin" --role admin

  # Both (beds first)
  python -m scripts.setup_er --ensure-beds --ensure-user --username nurse1 --password "..."
"""

from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from smart_er.core.database import SessionLocal
from smart_er.core.logging import configure_logging
from smart_er.models.user import StaffRole
from smart_er.services.auth_service import ensure_user
from smart_er.services.bed_service import ensure_bed_slots

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Smart ER setup")
    p.add_argument("--ensure-beds", action="store_true", help="Create missing bed slots 1..38")
    p.add_argument("--ensure-user", action="store_true", help="Create or reset a staff user")

    p.add_argument("--username", type=str, help="Staff username")
    p.add_argument("--password", type=str, help="Staff password")
    p.add_argument("--full-name", type=str, default=None, help="Default: the username")
    p.add_argument(
        "--role",
        type=str,
        choices=[role.value for role in StaffRole],
        default=StaffRole.NURSE.value,
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging()

    if not args.ensure_beds and not args.ensure_user:
        print("Nothing to do. Use --ensure-beds and/or --ensure-user.")
        sys.exit(1)

    if args.ensure_user and (not args.username or not args.password):
        raise SystemExit("--ensure-user needs --username and --password.")

    db: Session = SessionLocal()
    try:
        if args.ensure_beds:
            created = ensure_bed_slots(db)
            print(f"Bed slots ready ({created} created)")

        if args.ensure_user:
            user = ensure_user(
                db,
                username=args.username,
                password=args.password,
                full_name=args.full_name or args.username,
                role=StaffRole(args.role),
            )
            print(f"User ready: {user.username} ({user.role.value})")

    except Exception:
        db.rollback()
        logger.exception("ER setup failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
