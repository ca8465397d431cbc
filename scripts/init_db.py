#!/usr/bin/env python3
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.db import DATABASE_URL, init_db  # noqa: E402


def create_tables():
    init_db()
    print("✅ Tables created (if not existing)")


if __name__ == '__main__':
    print("🚀 Initializing database...")
    print(f"Using DATABASE_URL={DATABASE_URL}")
    create_tables()
    print("🎉 Done.")
