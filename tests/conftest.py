# /tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.config.database import get_db
from catalog.core.init_db import create_tables
from catalog.main import app
from catalog.services.book_manager import BookManager
from catalog.services.category_manager import CategoryManager


@pytest.fixture
def engine():
    """
    Creates a NEW in-memory SQLite database for EACH test function.
    StaticPool keeps the single connection alive so every session sees the same data.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def category_manager(db_session):
    return CategoryManager(db_session)


@pytest.fixture
def book_manager(db_session):
    return BookManager(db_session)


@pytest.fixture
def sample_tree(category_manager):
    """
    Fiction
    ├── Fantasy
    └── Sci-Fi
        └── Cyberpunk
            └── Biopunk
    Non-Fiction
    """
    fiction = category_manager.create_category("Fiction")
    non_fiction = category_manager.create_category("Non-Fiction")
    sci_fi = category_manager.create_category("Sci-Fi", fiction.category_id)
    fantasy = category_manager.create_category("Fantasy", fiction.category_id)
    cyberpunk = category_manager.create_category("Cyberpunk", sci_fi.category_id)
    biopunk = category_manager.create_category("Biopunk", cyberpunk.category_id)
    return {
        "fiction": fiction.category_id,
        "non_fiction": non_fiction.category_id,
        "sci_fi": sci_fi.category_id,
        "fantasy": fantasy.category_id,
        "cyberpunk": cyberpunk.category_id,
        "biopunk": biopunk.category_id,
    }


@pytest.fixture
def client(db_session):
    """
    A TestClient whose get_db dependency yields the test session.
    Used without a `with` block so the lifespan (which touches the real database) never runs.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
