"""Process-level lifecycle for the submission store: init -> serve -> shutdown."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from judgestore.core.config import Settings, get_settings
from judgestore.core.errors import InitializationFailure
from judgestore.core.logging_config import init_error_tracking, setup_logging
from judgestore.services.submissions import SubmissionStore

logger = logging.getLogger(__name__)


def create_store(settings: Optional[Settings] = None, configure_logging: bool = True) -> SubmissionStore:
    """Configure logging and error tracking, then open the store.

    Raises InitializationFailure when the database cannot be reached; callers
    are expected to let it terminate the process.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)
    init_error_tracking(settings)

    try:
        store = SubmissionStore.open(settings)
    except InitializationFailure:
        logger.critical("Submission store unavailable at startup; refusing to serve")
        raise

    logger.info(f"Submission store ready (database={settings.database_name})")
    return store


@contextmanager
def store_lifespan(settings: Optional[Settings] = None, configure_logging: bool = True) -> Iterator[SubmissionStore]:
    """Open the store for the duration of the block and release it afterwards."""
    store = create_store(settings, configure_logging=configure_logging)
    try:
        yield store
    finally:
        store.close()
