import os

os.environ["TESTING"] = "True"

import pytest
import fakeredis
from fastapi.testclient import TestClient

from sliceurl.database import Base, SessionLocal, engine
from sliceurl.dependencies import get_identity_verifier, get_mailer
from sliceurl.database import get_db
from sliceurl.main import app as fastapi_app
from sliceurl.mailer import Mailer
from sliceurl.models import AUTH_TYPE_PASSWORD, User
from sliceurl.services.identity import issue_access_token
from sliceurl.social import IdentityVerificationError, IdentityVerifier
from sliceurl.utils import get_password_hash
import sliceurl.rate_limit


class FakeMailer(Mailer):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, to, subject, html):
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True


class FakeIdentityVerifier(IdentityVerifier):
    def __init__(self):
        self.claims = None

    def verify(self, token):
        if self.claims is None:
            raise IdentityVerificationError("invalid signature")
        return self.claims


# Mock Redis client
@pytest.fixture(scope="function")
def redis_mock():
    original_redis = sliceurl.rate_limit.redis_client

    fake_redis = fakeredis.FakeStrictRedis(decode_responses=True)

    sliceurl.rate_limit.redis_client = fake_redis

    yield fake_redis

    sliceurl.rate_limit.redis_client = original_redis

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def mailer():
    return FakeMailer()

@pytest.fixture
def verifier():
    return FakeIdentityVerifier()

@pytest.fixture
def client(db, redis_mock, mailer, verifier):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_mailer] = lambda: mailer
    fastapi_app.dependency_overrides[get_identity_verifier] = lambda: verifier

    with TestClient(fastapi_app) as client:
        yield client
        # release the session's connection before lifespan shutdown disposes the engine
        db.close()

    fastapi_app.dependency_overrides = {}

@pytest.fixture
def make_user(db):
    def _make_user(username="testuser", email="test@example.com", password="testpassword", confirmed=True):
        user = User(
            username=username,
            email=email,
            full_name="Test User",
            password_hash=get_password_hash(password),
            auth_type=AUTH_TYPE_PASSWORD,
            is_account_confirmed=confirmed,
            account_confirmation_token="" if confirmed else "a" * 64
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user

def bearer(user):
    return {"Authorization": f"Bearer {issue_access_token(user)}"}

@pytest.fixture
def auth_headers():
    return bearer

@pytest.fixture
def test_user(make_user):
    return make_user()

@pytest.fixture
def other_user(make_user):
    return make_user(username="otheruser", email="other@example.com")

@pytest.fixture
def auth_client(client, test_user):
    client.headers.update(bearer(test_user))
    return client
