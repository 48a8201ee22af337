import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from enquiry_api.core.config import settings
from enquiry_api.core.db import Base
from enquiry_api.core.deps import get_db, get_mailer, get_sms_sender
from enquiry_api.main import app


class FakeSmsSender:
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent: list[tuple[str, str]] = []

    def send_code(self, phone: str, code: str) -> bool:
        self.sent.append((phone, code))
        return self.ok

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class FakeMailer:
    def __init__(self, ok: bool = True, raises: bool = False):
        self.ok = ok
        self.raises = raises
        self.sent: list[dict] = []

    def send_mail(self, *, to: str, subject: str, html: str, from_name: str | None = None) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html, "from_name": from_name})
        if self.raises:
            raise ConnectionError("smtp down")
        return self.ok


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sms():
    return FakeSmsSender()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(settings, "default_country_code", "+91")
    monkeypatch.setattr(settings, "otp_expiry_minutes", 10)
    monkeypatch.setattr(settings, "dedup_window_hours", 24)
    monkeypatch.setattr(settings, "manager_email", "manager@example.com")


@pytest.fixture
def client(session_factory, sms, mailer):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_sms_sender] = lambda: sms
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
