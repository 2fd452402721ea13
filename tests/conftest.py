"""Shared fixtures: in-memory database, encoded test images and an API client."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import create_app, current_strategy
from database import get_db, init_db
from face_utils import OpenCVFacialRecognitionStrategy
from repository import TemplateStore
from tests.utils import encode_png


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return TemplateStore(db)


@pytest.fixture
def opencv_strategy():
    return OpenCVFacialRecognitionStrategy()


@pytest.fixture
def images():
    """Three images with distinct deterministic embeddings."""
    return {
        "A": encode_png(10),
        "B": encode_png(20),
        "C": encode_png(30),
    }


@pytest.fixture
def app(session_factory, opencv_strategy):
    """Application wired to the in-memory database and the opencv strategy."""
    application = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[current_strategy] = lambda: opencv_strategy
    return application


@pytest.fixture
def client(app):
    # not entered as a context manager: lifespan (file database, config
    # strategy) stays out of the tests
    return TestClient(app)
