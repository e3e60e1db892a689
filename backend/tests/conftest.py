import os
import tempfile

# The lifespan bootstrap and the readiness probe use the application engine,
# so it has to point at a throwaway database before the app is imported.
_DB_DIR = tempfile.mkdtemp(prefix="academy-tests-")
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{os.path.join(_DB_DIR, 'academy.db')}"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from academy.api.deps import get_db
from academy.core.security import get_password_hash
from academy.db.base import Base
from academy.main import app
from academy.models.user import User, UserRole
from academy.services.rate_limit import login_limiter, public_form_limiter

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass123!"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    login_limiter.reset()
    public_form_limiter.reset()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    login_limiter.reset()
    public_form_limiter.reset()


@pytest.fixture()
def admin_headers(client, session_factory):
    with session_factory() as db:
        db.add(
            User(
                name="Academy Admin",
                email=ADMIN_EMAIL,
                hashed_password=get_password_hash(ADMIN_PASSWORD),
                role=UserRole.admin,
            )
        )
        db.commit()

    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
