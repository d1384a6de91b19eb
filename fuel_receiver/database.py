"""
Database session management for the fuel receiver.

Builds the engine and a thread-local session factory for a database URL,
and ties request-scoped sessions to the Flask application context.
"""

import logging
import time

from flask import current_app, g
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import scoped_session, sessionmaker

from .models import Base, get_engine

logger = logging.getLogger(__name__)

# Add slow query logging (queries >500ms)
SLOW_QUERY_THRESHOLD_MS = 500


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Record query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    total_time = time.time() - conn.info["query_start_time"].pop(-1)
    duration_ms = total_time * 1000

    if duration_ms > SLOW_QUERY_THRESHOLD_MS:
        truncated_query = statement[:200] + "..." if len(statement) > 200 else statement
        logger.warning(
            f"Slow query detected: {duration_ms:.2f}ms - {truncated_query}", extra={"duration_ms": duration_ms}
        )


def create_session_factory(database_url, create_tables=False):
    """
    Create an engine and a scoped session factory for ``database_url``.

    Returns:
        (engine, scoped_session) tuple
    """
    engine = get_engine(database_url)
    if create_tables:
        Base.metadata.create_all(engine)
    return engine, scoped_session(sessionmaker(bind=engine))


def get_db():
    """
    Get database session for the current request.

    The session is stored on Flask's application context and closed in
    ``close_db`` at teardown.
    """
    if "db" not in g:
        g.db = current_app.extensions["fuel_session_factory"]()
    return g.db


def close_db(exception=None):
    """Close database session at end of request."""
    db = g.pop("db", None)
    if db is not None:
        current_app.extensions["fuel_session_factory"].remove()


def init_app(app):
    """Register the teardown function to close sessions."""
    app.teardown_appcontext(close_db)
