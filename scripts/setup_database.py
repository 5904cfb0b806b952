#!/usr/bin/env python3
"""
Database Setup Script

Creates the submissions table on the configured database.
Deployments that track schema with Alembic run alembic/versions instead.

Usage:
    python scripts/setup_database.py
"""

import sys
from pathlib import Path

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from judgestore.core.config import get_settings
from judgestore.core.errors import SubmissionStoreError
from judgestore.main import store_lifespan


def main(settings=None):
    """Set up database tables."""
    settings = settings or get_settings()
    print(f"🗄️  Setting up submissions database '{settings.database_name}'...")

    try:
        with store_lifespan(settings, configure_logging=False) as store:
            store.create_schema()
        print("✅ Database tables created successfully!")
        print("\n📋 Tables created:")
        print("   • submissions - Submitted source, language and judge results")
        return 0

    except SubmissionStoreError as e:
        print(f"❌ Database setup failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
