"""Pytest configuration and shared fixtures."""

import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker
from alembic import command
from alembic.config import Config

from tests.helpers.auth import bearer_headers

# Configuration, the engine and logging are set up when cardlink is first
# imported, so the test environment has to exist before any fixture runs.
_TEST_DIR = Path(tempfile.mkdtemp(prefix="cardlink-tests-"))
_test_db_url = f"sqlite:///{_TEST_DIR / 'cardlink-test.db'}"

TEST_ENV = {
    "CARDLINK_DATABASE_URL": _test_db_url,
    "CARDLINK_JWT_SECRET_KEY": "Xq7vR2mK9pLw4tNz8bYc3hFj6sDg1aEu5oWi0TfV",
    "CARDLINK_PUBLIC_BASE_URL": "https://linkme.test",
    "CARDLINK_ASSET_DIR": str(_TEST_DIR / "assets"),
    "CARDLINK_ASSET_BASE_URL": "http://testserver/assets",
    "CARDLINK_LOG_TO_FILE": "0",
    "CARDLINK_TRUST_PROXY_HEADERS": "1",
}
os.environ.update(TEST_ENV)

# Child tables first so foreign keys never block the cleanup
_TABLES = ("orders", "profile_visitors", "profile_views", "social_links", "profiles", "users")


@pytest.fixture(scope="session")
def setup_test_env():
    """Migrate the temporary database once per session."""
    try:
        _run_alembic_migrations(_test_db_url)
        yield _test_db_url
    finally:
        shutil.rmtree(_TEST_DIR, ignore_errors=True)


def _run_alembic_migrations(db_url: str):
    """Run Alembic migrations programmatically for test database."""
    alembic_cfg = Config()
    alembic_cfg.set_main_option('script_location', str(_project_root() / 'alembic'))
    alembic_cfg.set_main_option('sqlalchemy.url', db_url)

    command.upgrade(alembic_cfg, 'head')


def _project_root() -> Path:
    """Return the repository root path."""
    return Path(__file__).resolve().parents[1]


@pytest.fixture
def test_db(setup_test_env):
    """Session factory bound to the migrated test database."""
    from cardlink.db.database import create_database_engine

    engine = create_database_engine(setup_test_env)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield TestingSessionLocal

    engine.dispose()


@pytest.fixture
def db_session(test_db):
    """A database session closed after the test."""
    session = test_db()

    yield session

    session.close()


@pytest.fixture(autouse=True)
def db_cleanup(test_db):
    """Wipe every table after each test to keep tests isolated."""
    yield
    session = test_db()
    try:
        for table in _TABLES:
            session.execute(text(f'DELETE FROM "{table}"'))
        session.commit()
    finally:
        session.close()


@pytest.fixture
def asset_store(tmp_path):
    """Filesystem asset store rooted in the test's temp directory."""
    from cardlink.services.assets import LocalAssetStore

    return LocalAssetStore(str(tmp_path / "assets"), "http://testserver/assets")


@pytest.fixture
def geo_resolver():
    """Resolver placing every public address in Amman, Jordan."""
    from cardlink.services.geo import GeoLocation, GeoResolver

    class FixedGeoResolver(GeoResolver):
        def __init__(self):
            self.lookups = []

        def lookup(self, ip: str) -> GeoLocation:
            self.lookups.append(ip)
            return GeoLocation("JO", "Amman")

    return FixedGeoResolver()


@pytest.fixture
def client(test_db, asset_store, geo_resolver) -> Generator[TestClient, None, None]:
    """Create a test client with database and collaborator overrides."""
    from cardlink.main import app
    from cardlink.db.database import get_db
    from cardlink.services.assets import get_asset_store
    from cardlink.services.geo import get_geo_resolver

    def override_get_db():
        # Use a fresh session per request in tests
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_asset_store] = lambda: asset_store
    app.dependency_overrides[get_geo_resolver] = lambda: geo_resolver

    with TestClient(app) as test_client:
        yield test_client

    # Clear overrides to avoid affecting other tests
    app.dependency_overrides.clear()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id) -> Dict[str, str]:
    return bearer_headers(user_id, email="owner@example.com", first_name="Jane", last_name="Doe")


@pytest.fixture
def other_headers() -> Dict[str, str]:
    return bearer_headers(uuid.uuid4(), email="other@example.com")


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return bearer_headers(uuid.uuid4(), role="admin", email="admin@example.com")


@pytest.fixture
def make_api_profile(client, auth_headers):
    """Factory creating a profile through the API and returning its data."""
    def _maker(
        name: str = "Jane Doe",
        profile_type: str = "personal",
        headers: Optional[Dict[str, str]] = None,
        **fields: Any,
    ) -> Dict[str, Any]:
        payload = {"profileType": profile_type, "name": name, **fields}
        response = client.post("/api/profiles", json=payload, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _maker


@pytest.fixture
def repos(db_session):
    """Repository container over the test session."""
    from cardlink.repositories.dependencies import build_repository_container

    return build_repository_container(db_session)


@pytest.fixture
def make_user(db_session):
    """Factory to insert a user row directly."""
    from cardlink.db.models import User

    def _maker(role: str = "user", email: Optional[str] = None) -> User:
        user = User(id=uuid.uuid4(), email=email, role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _maker


@pytest.fixture
def registry(repos, asset_store):
    """Profile registry publishing under the test base URL."""
    from cardlink.services.profile_registry import ProfileRegistry

    return ProfileRegistry(repos, asset_store, public_base_url="https://linkme.test")


@pytest.fixture
def tracker(repos, geo_resolver):
    from cardlink.services.tracker import ViewTracker

    return ViewTracker(repos, geo_resolver)
