"""Helpers and Flask application integration for the SQL stores."""

from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from typing import Generator, Optional

from werkzeug.local import LocalProxy
from sqlalchemy import text
from sqlalchemy.orm.session import Session

from .models import db

logger = logging.getLogger(__name__)


def now() -> int:
    """Get the current time in milliseconds since the epoch."""
    return int(datetime.now(tz=timezone.utc).timestamp() * 1000)


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """Context manager for database transaction."""
    try:
        yield db.session
        # The caller may have explicitly committed already. We only want to
        # commit here if there is anything remaining that is not flushed.
        if db.session.new or db.session.dirty or db.session.deleted:
            db.session.commit()
    except Exception as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def init_app(app: Optional[LocalProxy]) -> None:
    """Set configuration defaults and attach session to the application."""
    db.init_app(app)


def current_session() -> Session:
    """Get/create database session for this context."""
    return db.session


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()


def is_available() -> bool:
    """Check our connection to the database."""
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        logger.error('Encountered an error talking to database: %s', e)
        return False
    return True
