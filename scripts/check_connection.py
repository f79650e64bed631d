#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the database is reachable and populated.
Usage: python scripts/check_connection.py
"""
from sqlalchemy.exc import SQLAlchemyError

from tus_guide.core.config import get_settings
from tus_guide.db.database import check_db_connection, fetch_all, get_db_session


def main():
    settings = get_settings()
    print("=" * 50)
    print("TUS GUIDE - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] Testing database...")
    print(f"    URL: {settings.database_url.split('@')[-1]}")
    if not check_db_connection():
        print("    ❌ Database: FAILED")
        return
    print("    ✅ Database: CONNECTED")

    print("\n[2] Counting rows...")
    try:
        with get_db_session() as db:
            for table in ("hastaneler", "tus_puanlar"):
                count = fetch_all(db, f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]
                print(f"    {table}: {count}")
    except SQLAlchemyError as e:
        print(f"    ⚠️  Tables missing or unreadable ({e.__class__.__name__}); run scripts/import_csv.py")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
