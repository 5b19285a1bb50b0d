"""Shared test configuration and fixtures for EZ Check-in tests"""

import logging
import os
import subprocess
import sys
from pathlib import Path

from tests.config import test_config

# The app reads its config at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", test_config["session_secret_key"])
os.environ.setdefault("ADMIN_PASSWORD", test_config["admin_password"])
os.environ.setdefault("APP_BASE_URL", test_config["app_base_url"])
os.environ.setdefault("SECURE_COOKIES", "false")

import docker  # noqa: E402
import pytest  # noqa: E402
from docker.errors import DockerException  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlmodel import Session  # noqa: E402
from testcontainers.postgres import PostgresContainer  # noqa: E402

from ez_checkin.auth.admin_gate import get_admin_gate  # noqa: E402
from ez_checkin.main import app  # noqa: E402
from ez_checkin.models.database import build_engine, get_db, init_db  # noqa: E402
from ez_checkin.models.field_type import FieldType  # noqa: E402
from ez_checkin.services.checkin_service import CheckinService  # noqa: E402
from ez_checkin.services.form_service import FieldSpec, FormService  # noqa: E402
from ez_checkin.services.registration_service import (  # noqa: E402
    RegistrationService,
)
from ez_checkin.services.token_service import (  # noqa: E402
    TokenService,
    get_token_service,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine so threads get their own connections"""
    engine = build_engine(f"sqlite:///{tmp_path / 'checkin.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def postgres_container():
    """PostgreSQL test container migrated to the latest schema"""
    try:
        docker.from_env().ping()
    except DockerException as e:
        pytest.skip(f"Docker is not available for PostgreSQL tests: {e}")

    with PostgresContainer("postgres:16") as postgres:
        _run_migrations(postgres.get_connection_url())
        yield postgres


def _run_migrations(database_url: str):
    """Run Alembic migrations on the test database"""

    # Get the server directory (where alembic.ini is located)
    server_dir = Path(__file__).parent.parent
    alembic_ini = server_dir / "alembic.ini"

    env = os.environ.copy()
    env["DATABASE_URL"] = database_url

    try:
        result = subprocess.run(
            [sys.executable, "-m", "alembic", "-c", str(alembic_ini), "upgrade", "head"],
            cwd=server_dir,
            env=env,
            capture_output=True,
            text=True,
            timeout=60,
        )

        if result.returncode != 0:
            logger.error(f"Alembic migration failed: {result.stderr}")
            raise RuntimeError(f"Failed to run migrations: {result.stderr}")
        else:
            logger.info("Database schema setup completed successfully")

    except Exception as e:
        logger.error(f"Error running migrations: {e}")
        raise


@pytest.fixture
def pg_engine(postgres_container):
    """Engine on the migrated PostgreSQL database, emptied before each test"""
    engine = build_engine(postgres_container.get_connection_url())
    with engine.begin() as conn:
        conn.execute(text("UPDATE published_form SET form_id = NULL"))
        conn.execute(text("DELETE FROM registrations"))
        conn.execute(text("DELETE FROM form_fields"))
        conn.execute(text("DELETE FROM event_forms"))
    yield engine
    engine.dispose()


@pytest.fixture
def _db_session(db_engine):
    """Private DB session for fixtures only.

    Prefer the service fixtures (`form_service`, `registration_service`,
    `checkin_service`) over using the session directly.
    """
    session = Session(db_engine)
    yield session
    session.close()


@pytest.fixture
def token_service():
    return TokenService(test_config["app_base_url"])


@pytest.fixture
def form_service(_db_session):
    return FormService(_db_session)


@pytest.fixture
def registration_service(_db_session, token_service):
    return RegistrationService(_db_session, token_service)


@pytest.fixture
def checkin_service(_db_session, token_service):
    return CheckinService(_db_session, token_service)


@pytest.fixture
def name_fields():
    """Single required text field 'name'"""
    return [FieldSpec(name="name", type=FieldType.TEXT, required=True)]


@pytest.fixture
def published_form(form_service, name_fields):
    """A published form with one required 'name' field"""
    form = form_service.create_form(name_fields, title="Spring meetup")
    return form_service.publish_form(form.id)


@pytest.fixture
def client(db_engine, token_service):
    """Test client wired to the per-test database"""
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        with Session(db_engine) as session:
            yield session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_token_service] = lambda: token_service

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)


@pytest.fixture
def admin_client(client):
    """Client holding a real admin session and the matching CSRF header"""
    response = client.post(
        "/api/admin/login", json={"password": test_config["admin_password"]}
    )
    assert response.status_code == 200, response.text

    csrf_token = client.cookies.get("csrftoken")
    assert csrf_token, "Expected csrftoken cookie after login"
    client.headers["X-CSRFToken"] = csrf_token
    return client


class _StaticGate:
    def __init__(self, allowed: bool):
        self.allowed = allowed

    def is_admin(self, request) -> bool:
        return self.allowed


@pytest.fixture
def gate_client(client):
    """Client whose admin gate is an injected stub; set `.gate.allowed`."""
    gate = _StaticGate(allowed=True)
    app.dependency_overrides[get_admin_gate] = lambda: gate
    client.gate = gate
    return client
