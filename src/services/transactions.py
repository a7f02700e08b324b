"""
Commit helper shared by the administration services.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.services.exceptions import BookingPersistenceError

logger = logging.getLogger(__name__)


def commit_or_rollback(session: Session, action: str) -> None:
    """
    Commit the session, rolling back on failure.

    Args:
        session: Database session with pending changes
        action: What was being saved, for the log line and error message

    Raises:
        BookingPersistenceError: If the commit failed
    """
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise BookingPersistenceError(f"Failed to {action}", original_error=e) from e
