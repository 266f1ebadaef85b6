"""
Shared test configuration and fixtures
"""
import pytest
import os
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

# Set test environment before importing app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["MAIL_PROVIDER"] = "resend"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)

from main import create_app
from api.config import Settings

TEST_SECRET = "test-secret-key-for-testing-only"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpassword123"


class FakeMailer:
    """Records outgoing mail instead of sending it"""

    def __init__(self):
        self.sent = []
        self.error = None

    def send(self, from_email, to_email, subject, html_content):
        if self.error is not None:
            raise self.error
        self.sent.append(
            {"from": from_email, "to": to_email, "subject": subject, "html": html_content}
        )
        return f"email-{len(self.sent)}"


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        resend_api_key="re_test_key",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        rate_limit_enabled=False,
    )


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def app(settings, mailer):
    """A fresh application with its own in-memory database"""
    return create_app(settings, mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(app):
    session = app.state.session_factory()
    yield session
    session.close()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client):
    """Register a user and return the {user, token} payload"""

    def _register(email, password="strongpassword123"):
        response = client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register_user):
    """Create a user and return authentication headers"""
    return bearer(register_user("test@example.com")["token"])


@pytest.fixture
def admin_headers(client):
    response = client.post(
        "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.text
    return bearer(response.json()["token"])


@pytest.fixture
def api_key(client, auth_headers):
    response = client.post("/keys/generate", headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()


class StoreOutage:
    """Makes every statement on the engine fail while ``down`` is set"""

    def __init__(self, engine):
        self.engine = engine
        self.down = False

    def check(self, conn, cursor, statement, parameters, context, executemany):
        if self.down:
            raise OperationalError(statement, parameters, Exception("store unavailable"))


@pytest.fixture
def store_outage(app):
    outage = StoreOutage(app.state.engine)
    event.listen(outage.engine, "before_cursor_execute", outage.check)
    yield outage
    event.remove(outage.engine, "before_cursor_execute", outage.check)
