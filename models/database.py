"""
Audit Store Configuration
=========================

SQLAlchemy engine and session management for the local provisioning audit
store. Defaults to a SQLite file next to the package; set
``ACCESS_AUDIT_DB_URL`` to any SQLAlchemy URL to keep the trail elsewhere.

This store never holds catalog data read from SQL Server. It only records
the provisioning actions this tool performed.
"""

import os
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

DB_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'access_audit.db')
DATABASE_URL = os.environ.get('ACCESS_AUDIT_DB_URL', f"sqlite:///{DB_PATH}")


def _connect_args(url: str):
    # Required for SQLite
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@contextmanager
def get_session():
    """
    Session scope for the audit store.

    Commits on success and rolls back on failure.

    Usage:
        with get_session() as session:
            AuditLogger(session).get_events(limit=10)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db():
    """Create the audit tables if they do not exist. Safe to call repeatedly."""
    from . import entities  # noqa: F401
    Base.metadata.create_all(bind=engine)


def reset_db():
    """Drop and recreate the audit tables. Destroys the recorded trail."""
    from . import entities  # noqa: F401
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
