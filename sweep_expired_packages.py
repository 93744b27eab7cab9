#!/usr/bin/env python3
"""
Expire Packages Script
Deactivates every active package whose valid_until has passed, once,
outside the running server's background sweeper.
"""

import sys

from salon_packages.db.database import DatabaseManager
from salon_packages.core.exceptions import AppException
from salon_packages.services.expiry_service import ExpirySweeper


def sweep_expired_packages(dry_run: bool = False):
    """Deactivate expired packages directly in the configured database"""
    manager = DatabaseManager()
    session = manager.get_session()

    try:
        sweeper = ExpirySweeper(session)

        if dry_run:
            pending = sweeper.count_pending_expiry()
            print(f"ℹ️  {pending} package(s) would be deactivated")
            return

        count = sweeper.deactivate_expired()

        if count > 0:
            print(f"✅ SUCCESS: {count} expired package(s) deactivated")
        else:
            print("✅ No expired packages found")

    except AppException as e:
        print(f"❌ ERROR: {e.message}")
        print("\nMake sure:")
        print("1. DATABASE_URL points at the package database")
        print("2. The schema has been initialized")
        print("3. Database is not locked by another process")
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    print("=" * 60)
    print("EXPIRE SERVICE PACKAGES")
    print("=" * 60)
    print()
    sweep_expired_packages(dry_run="--dry-run" in sys.argv[1:])
    print()
    print("=" * 60)
