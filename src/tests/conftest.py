"""Pytest configuration and fixtures for service layer and API tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from src.models.base import Base


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes

    StaticPool keeps a single connection so the API's worker threads see
    the same in-memory database as the test.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    from src.models import dashboard_tab, tab_group, tab_input  # noqa: F401

    Base.metadata.create_all(engine)

    # Create session factory
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    # Provide database to test
    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    # Restore original session factory
    db_module.get_session_factory = original_get_session


@pytest.fixture
def sample_group(test_db):
    """Provide a root-level group named "Reports"."""
    from src.services import tab_group_service

    return tab_group_service.add_group("Reports")


@pytest.fixture
def sample_tab(test_db):
    """Provide an uncategorized tab named "Sales Overview"."""
    from src.services import dashboard_tab_service

    return dashboard_tab_service.add_tab("Sales Overview")


@pytest.fixture
def api_client(test_db):
    """Provide a FastAPI TestClient bound to the test database."""
    from fastapi.testclient import TestClient

    from src.api.app import create_app

    return TestClient(create_app(), raise_server_exceptions=False)
