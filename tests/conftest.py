import copy
import re

import pytest
from bson import ObjectId
from werkzeug.security import generate_password_hash

from ticket_portal import create_app
from ticket_portal.config import Config

CSRF_RE = re.compile(r'name="csrf_token" value="([^"]+)"')


class AppTestConfig(Config):
    TESTING = True
    DEBUG = False
    SECRET_KEY = "test-secret"
    MONGODB_URI = "mongodb://unused"
    SESSION_TYPE = None
    SESSION_COOKIE_SECURE = False
    TRUST_PROXY = False
    SMTP_HOST = None
    MAIL_FROM = "tickets@localhost"
    CONTACT_EMAIL = "contact@localhost"
    UPLOAD_FOLDER = "uploads"
    GOOGLE_CLIENT_ID = "google-id"
    GOOGLE_CLIENT_SECRET = "google-secret"
    LINKEDIN_CLIENT_ID = "linkedin-id"
    LINKEDIN_CLIENT_SECRET = "linkedin-secret"
    PAYMENT_API_URL = "https://pay.example.test"
    PAYMENT_API_KEY = "pay-key"
    TICKET_PRICE = 30000
    CONTENT_SECURITY_POLICY = None
    REFERRER_POLICY = None
    NOSNIFF = False
    HSTS_PRELOAD = True


class _InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _UpdateResult:
    def __init__(self, matched):
        self.matched_count = matched
        self.modified_count = matched


def _matches(doc, query):
    for key, expected in query.items():
        value = doc.get(key)
        if isinstance(expected, dict):
            for op, operand in expected.items():
                if op == "$ne" and value == operand:
                    return False
                if op == "$gt" and (value is None or not value > operand):
                    return False
        elif value != expected:
            return False
    return True


class FakeCollection:
    """The handful of pymongo collection calls the stores make."""

    def __init__(self):
        self.documents = []

    def create_index(self, *args, **kwargs):
        return None

    def find_one(self, query=None):
        for doc in self.documents:
            if _matches(doc, query or {}):
                return copy.deepcopy(doc)
        return None

    def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return _InsertResult(document["_id"])

    def update_one(self, query, update):
        for doc in self.documents:
            if _matches(doc, query):
                for key, value in update.get("$set", {}).items():
                    doc[key] = copy.deepcopy(value)
                for key in update.get("$unset", {}):
                    doc.pop(key, None)
                return _UpdateResult(1)
        return _UpdateResult(0)


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        return self._collections.setdefault(name, FakeCollection())

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def app(db, tmp_path):
    app = create_app(AppTestConfig, db=db)
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sent_mail(monkeypatch):
    """Capture outgoing mail from every controller that sends it."""
    outbox = []

    def fake_send_mail(to, subject, body, reply_to=None):
        outbox.append({"to": to, "subject": subject, "body": body, "reply_to": reply_to})
        return True

    monkeypatch.setattr("ticket_portal.user.send_mail", fake_send_mail)
    monkeypatch.setattr("ticket_portal.contact.send_mail", fake_send_mail)
    return outbox


@pytest.fixture
def make_user(db):
    def _make_user(email="ada@example.com", password="secret123", **extra):
        user = {
            "email": email,
            "password": generate_password_hash(password),
            "profile": {"name": extra.pop("name", "Ada")},
            "tokens": [],
        }
        user.update(extra)
        db.users.insert_one(user)
        return user
    return _make_user


def login(client, user):
    with client.session_transaction() as sess:
        sess["user_id"] = str(user["_id"])


def csrf_token(client, path="/login"):
    response = client.get(path)
    match = CSRF_RE.search(response.get_data(as_text=True))
    assert match, f"no csrf token rendered on {path}"
    return match.group(1)


def session_value(client, key):
    with client.session_transaction() as sess:
        return sess.get(key)
