#!/usr/bin/env python3
"""
Database utilities for initializing and inspecting the PostgreSQL database.
Can be run as a standalone script or imported as a module.
"""
import sys
from pathlib import Path

from database import MessagePartition, get_database_from_env

SCHEMA_PATH = Path(__file__).with_name("init_db.sql")


def init_database() -> bool:
    """Create the message tables by running the init_db.sql script."""
    db = None
    try:
        db = get_database_from_env()
        schema = SCHEMA_PATH.read_text()

        with db.get_cursor() as cursor:
            cursor.execute(schema)

        print("✓ Tables created (or already present):")
        for partition in MessagePartition:
            print(f"  - {partition.value}")
        return True
    except Exception as e:
        print(f"✗ Failed to initialize database: {e}")
        return False
    finally:
        if db:
            db.close()


def test_connection() -> bool:
    """Test database connection and display row counts."""
    db = None
    try:
        db = get_database_from_env()
        print("✓ Successfully connected to database!")

        print("\nMessage tables:")
        for partition in MessagePartition:
            count = db.count_messages(partition)
            print(f"  - {partition.value} ({count} rows)")
        return True
    except Exception as e:
        print(f"✗ Failed to connect to database: {e}")
        return False
    finally:
        if db:
            db.close()


def display_all_messages() -> bool:
    """Display every stored message from both tables."""
    db = None
    try:
        db = get_database_from_env()

        for partition in MessagePartition:
            rows = db.get_all_messages(partition)

            print("=" * 60)
            print(f"{partition.value}: {len(rows)} message(s)")
            print("=" * 60)
            for row in rows:
                print(f"Sender ID: {row['sender_id']}")
                print(f"Filter word: {row['filter_word']}")
                print(f"Sent: {row['sent_date']}")
                print(f"Message: {row['message_text']}")
                print("-" * 60)
            print()
        return True
    except Exception as e:
        print(f"✗ Failed to display messages: {e}")
        return False
    finally:
        if db:
            db.close()


def main():
    """Main entry point for the script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Database utilities for the filter word bot"
    )
    parser.add_argument(
        "command",
        choices=["init", "test", "list"],
        help="Command to run: init (create tables), test (test connection), list (display stored messages)"
    )

    args = parser.parse_args()

    if args.command == "init":
        success = init_database()
    elif args.command == "test":
        success = test_connection()
    else:
        success = display_all_messages()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
