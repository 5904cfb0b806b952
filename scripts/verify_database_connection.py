#!/usr/bin/env python3
"""
Database Connection Verification Script
Opens the submission store and reads the newest page to prove it is usable.
"""

import logging
import os
import sys

# Add the parent directory to the path so we can import the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from judgestore.core.config import get_settings
from judgestore.core.context import OperationContext
from judgestore.core.errors import SubmissionStoreError
from judgestore.services.submissions import SubmissionStore


def verify_database_connection(settings=None):
    """Test database connection and log details."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger(__name__)
    settings = settings or get_settings()

    logger.info("=== DATABASE CONNECTION VERIFICATION ===")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Database: {settings.database_name}")

    if not os.getenv('JUDGE_DATABASE_URL'):
        logger.warning("JUDGE_DATABASE_URL not set - using the built-in local default")

    try:
        with SubmissionStore.open(settings) as store:
            logger.info(f"✅ {store.engine.dialect.name} connection successful!")
            page = store.query(OperationContext.from_settings(settings))
            logger.info(f"📊 Newest page holds {len(page)} submission(s)")
            if page:
                logger.info(f"📈 Latest submission: {page[0].id} ({page[0].status})")
        return True

    except SubmissionStoreError as e:
        logger.error(f"❌ Submission store check failed [{e.code}]: {e.message}")
        return False


if __name__ == "__main__":
    success = verify_database_connection()
    sys.exit(0 if success else 1)
