import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from types import SimpleNamespace

from contact_api.core.config import Settings
from contact_api.core.exceptions import NotificationError
from contact_api.core.rate_limit import MemoryRateLimitStore, RateLimiter
from contact_api.db.contact_store import ContactStore
from contact_api.main import create_app


class FakeCursor:
    def __init__(self, documents, error=None):
        self.documents = documents
        self.error = error

    async def to_list(self, length=None):
        if self.error:
            raise self.error
        return self.documents


class FakeCollection:
    """Just enough of a motor collection for ContactStore"""

    def __init__(self):
        self.documents = []
        self.error = None

    async def insert_one(self, document):
        if self.error:
            raise self.error
        document.setdefault("_id", ObjectId())
        self.documents.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"])

    def find(self, query=None):
        return FakeCursor([dict(doc) for doc in self.documents], self.error)


class RecordingMailer:
    configured = True

    def __init__(self):
        self.sent = []
        self.error = None

    def send_mail(self, to, subject, text):
        if self.error:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "text": text})


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def settings():
    return Settings(_env_file=None, email_user="noreply@example.com", email_service="gmail")


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def failing_mailer():
    mailer = RecordingMailer()
    mailer.error = NotificationError("SMTP connection refused")
    return mailer


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(MemoryRateLimitStore(15 * 60, clock=clock), max_requests=10)


@pytest.fixture
def app(settings, collection, mailer, rate_limiter):
    return create_app(
        settings=settings,
        contact_store=ContactStore(collection),
        mailer=mailer,
        rate_limiter=rate_limiter,
    )


@pytest.fixture
def client(app):
    return TestClient(app)
