"""
Create an ADMIN user (with an empty cart) in the database pointed to by
DATABASE_URL. Tables are created first when missing.

Usage:
    python scripts/create_admin.py --email admin@cantina.com --password secret123 --name "Admin"
"""

import argparse
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.db.session import SessionLocal, create_db
from app.core.config import settings
from app.services.auth import ensure_admin


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the canteen admin account")
    parser.add_argument("--email", default=settings.ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.ADMIN_PASSWORD)
    parser.add_argument("--name", default=settings.ADMIN_NAME)
    args = parser.parse_args(argv)

    if not args.email or not args.password:
        parser.error("--email and --password are required (or set ADMIN_EMAIL / ADMIN_PASSWORD)")
    if len(args.password) < 6:
        parser.error("password must have at least 6 characters")

    create_db()
    db = SessionLocal()
    try:
        user = ensure_admin(db, args.email, args.password, args.name)
        if user is None:
            print('ADMIN_EXISTS', args.email)
            return 1
        print('ADMIN_CREATED', user.id, user.email)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
