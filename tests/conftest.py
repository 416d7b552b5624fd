"""Provide fixtures for pytest."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.audit import AuditLogger
from models.database import Base
from models import entities  # noqa: F401
from scenarios.catalog import InMemoryCatalog
from scenarios.demo_data import build_demo_catalog


@pytest.fixture
def demo_catalog() -> InMemoryCatalog:
    """Fixture with the full demo catalog."""
    return build_demo_catalog()


@pytest.fixture
def empty_catalog() -> InMemoryCatalog:
    """Fixture with a catalog holding nothing."""
    return InMemoryCatalog()


@pytest.fixture
def audit_session():
    """In-memory SQLite session for the audit store."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def audit(audit_session) -> AuditLogger:
    return AuditLogger(audit_session, server_name="DEMO-SQL01")
