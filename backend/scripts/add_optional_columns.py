"""
Migration script to add the newer optional columns to an existing SQLite database.

Older databases were created before records carried reconciliation output
and search indices. Rows keep loading without these columns' values; this
script only makes the columns exist so new writes can fill them.

Run this script once against an old database file.
"""

import sqlite3
import sys
import os

# Database path (defaults to the file used by the default DATABASE_URL)
DB_PATH = os.path.join(os.path.dirname(__file__), '..', 'fleetledger.db')

# table -> [(column, DDL type)]
OPTIONAL_COLUMNS = {
    "records": [
        ("tag", "VARCHAR(64)"),
        ("unit_code", "VARCHAR(64)"),
        ("registered_owner", "VARCHAR(255)"),
        ("is_verified", "BOOLEAN DEFAULT 0"),
        ("search_index", "TEXT"),
    ],
    "expenses": [
        ("statement_id", "VARCHAR(64)"),
        ("search_index", "TEXT"),
    ],
    "statements": [
        ("total_tolls_detected", "FLOAT"),
    ],
    "fleet": [
        ("tag", "VARCHAR(64)"),
        ("unit_code", "VARCHAR(64)"),
    ],
}


def existing_columns(cursor, table):
    cursor.execute(f"PRAGMA table_info({table})")
    return [col[1] for col in cursor.fetchall()]


def migrate(db_path=DB_PATH):
    """Add every missing optional column."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        for table, columns in OPTIONAL_COLUMNS.items():
            present = existing_columns(cursor, table)
            if not present:
                print(f"[SKIP] table {table} does not exist yet (created on app startup)")
                continue

            for column, ddl in columns:
                if column in present:
                    print(f"[OK] {table}.{column} already exists.")
                    continue
                print(f"Adding {table}.{column}...")
                cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
                print(f"[OK] {table}.{column} added.")

        conn.commit()
        print("\n[OK] Migration completed successfully!")

    except Exception as e:
        print(f"Error during migration: {e}")
        conn.rollback()
        raise
    finally:
        conn.close()


if __name__ == "__main__":
    migrate(sys.argv[1] if len(sys.argv) > 1 else DB_PATH)
