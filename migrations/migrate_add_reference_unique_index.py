#!/usr/bin/env python3
"""Migration script to enforce one movement per business record.

Databases created before the ``uq_movement_reference`` constraint existed can
hold two movements for the same ``(reference_type, reference_id)`` pair, for
instance when two reconcile runs overlapped. This migration:
- reports every duplicated pair (with the movement IDs involved)
- refuses to continue while duplicates exist, so an operator can reverse the
  extra movements with ``cashledger movement reverse``
- creates the unique index ``uq_movement_reference`` once the log is clean

Usage:
    python migrations/migrate_add_reference_unique_index.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import cashledger modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import func, inspect, text
from cashledger.database.factories import create_sqlite_database
from cashledger.database.models import Movement

INDEX_NAME = "uq_movement_reference"


def reference_index_exists(engine) -> bool:
    """Check whether the movements table already enforces unique references.

    Args:
        engine: SQLAlchemy engine

    Returns:
        True if a unique index or constraint with the expected name exists
    """
    inspector = inspect(engine)
    names = {idx["name"] for idx in inspector.get_indexes("movements") if idx.get("unique")}
    names.update(uc["name"] for uc in inspector.get_unique_constraints("movements"))
    return INDEX_NAME in names


def find_duplicate_references(session) -> list[tuple[str, str, list[int]]]:
    """Find reference pairs that have more than one movement.

    Args:
        session: SQLAlchemy session

    Returns:
        List of (reference_type, reference_id, movement IDs)
    """
    pairs = (
        session.query(Movement.reference_type, Movement.reference_id)
        .filter(Movement.reference_type.isnot(None), Movement.reference_id.isnot(None))
        .group_by(Movement.reference_type, Movement.reference_id)
        .having(func.count(Movement.id) > 1)
        .all()
    )

    duplicates = []
    for reference_type, reference_id in pairs:
        ids = [
            row.id
            for row in session.query(Movement.id)
            .filter(
                Movement.reference_type == reference_type,
                Movement.reference_id == reference_id,
            )
            .order_by(Movement.id)
            .all()
        ]
        duplicates.append((reference_type, reference_id, ids))
    return duplicates


def migrate_database(database_path: str | None = None) -> None:
    """Migrate database to add the unique reference index.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        Exception: If migration fails or duplicate references exist
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        engine = db.engine

        inspector = inspect(engine)
        if "movements" not in inspector.get_table_names():
            raise Exception("Table 'movements' does not exist. Please initialize the database schema first.")

        if reference_index_exists(engine):
            print(f"Migration already applied: {INDEX_NAME} exists on movements table")
            return

        print("Checking for duplicated movement references...")

        session = db.session_factory()
        try:
            duplicates = find_duplicate_references(session)
        finally:
            session.close()

        if duplicates:
            for reference_type, reference_id, ids in duplicates:
                id_list = ", ".join(str(i) for i in ids)
                print(f"  {reference_type} {reference_id}: movements {id_list}")
            raise Exception(
                f"{len(duplicates)} reference(s) have more than one movement. "
                "Reverse the extra movements and run 'cashledger recompute' first."
            )

        with engine.begin() as conn:
            conn.execute(
                text(
                    f"CREATE UNIQUE INDEX {INDEX_NAME} "
                    "ON movements (reference_type, reference_id)"
                )
            )
            print(f"  Created index: {INDEX_NAME}")

        print("Migration completed successfully!")

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to enforce one movement per business record"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides CASHLEDGER_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
