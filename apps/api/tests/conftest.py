"""Shared fixtures for the stock tracker test-suite."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stock_tracker.core.database import Base
from stock_tracker.core.errors import DeliveryError
from stock_tracker.models import Alert  # noqa: F401  registers the alerts table
from stock_tracker.schemas.alert import AlertRecord
from stock_tracker.services.alert_store import AlertStore
from stock_tracker.services.mail_sender import MailMessage


class RecordingMailSender:
    """Mail sender that keeps messages in memory and can fail for chosen recipients."""

    def __init__(self, fail_for: tuple[str, ...] = ()) -> None:
        self.sent: list[MailMessage] = []
        self.fail_for = set(fail_for)

    async def send(self, message: MailMessage) -> None:
        if message.to in self.fail_for:
            raise DeliveryError(f"mailbox unavailable: {message.to}")
        self.sent.append(message)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def alert_store(session_factory):
    return AlertStore(session_factory)


@pytest.fixture
def mail_sender():
    return RecordingMailSender()


@pytest.fixture
def make_alert():
    """Factory for AlertRecord instances with sensible defaults."""

    def _make(**overrides) -> AlertRecord:
        values = {
            "id": "alert-1",
            "user_id": "user-1",
            "email": "trader@example.com",
            "index_symbol": "AAPL",
            "threshold": 100.0,
            "condition": "above",
            "is_triggered": False,
        }
        values.update(overrides)
        return AlertRecord(**values)

    return _make
