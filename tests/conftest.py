# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_cache, get_github_client
from app.core.cache import CacheManager, MemoryCacheBackend
from app.core.database import Base, build_engine, get_db
from app.models.registry import GitHubRepo, Project, Task  # noqa: F401  registers every model
from main import app

from helpers import FakeGitHubClient


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cache():
    return CacheManager(MemoryCacheBackend(), default_ttl=600)


@pytest.fixture
def github_client():
    return FakeGitHubClient()


@pytest.fixture
def make_project(db_session):
    def _make(name="Demo project", status="active", **fields):
        project = Project(name=name, status=status, **fields)
        db_session.add(project)
        db_session.commit()
        db_session.refresh(project)
        return project
    return _make


@pytest.fixture
def make_task(db_session):
    def _make(project, title="Demo task", status="pending", priority="medium", **fields):
        task = Task(title=title, status=status, priority=priority, project_id=project.id, **fields)
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task
    return _make


@pytest.fixture
def client(session_factory, cache, github_client):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_github_client] = lambda: github_client
    # no context manager: startup would create tables on the configured database
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()
