import os

# Must be set before app.config is imported anywhere.
os.environ["ENV"] = "test"
os.environ["TEST_DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app.db import Base, SessionLocal, engine, init_db
from app.main import create_app
from app.services.thread_context_manager import ThreadContextManager
from app.utils.db.db_session_helper import db_session

pytest_plugins = [
    "tests.fixtures.thread_context_fixtures",
]


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function", autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function")
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def session_factory():
    return db_session


@pytest.fixture(scope="function")
def context_manager(session_factory, fixed_now):
    return ThreadContextManager(session_factory=session_factory, clock=lambda: fixed_now)


@pytest.fixture(scope="function")
def client():
    with TestClient(create_app(testing=True)) as c:
        yield c
