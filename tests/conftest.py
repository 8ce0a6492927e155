from typing import Any, Dict, List, Sequence

import pytest

from lead_bot.app import create_app
from lead_bot.config import Settings
from lead_bot.database import Database
from lead_bot.models import Button
from lead_bot.repositories.lead_repository import LeadRepository
from lead_bot.repositories.settings_repository import SettingsRepository
from lead_bot.repositories.state_repository import StateRepository
from lead_bot.services.dialogue_engine import DialogueEngine
from lead_bot.services.green_api_client import DeliveryError
from lead_bot.services.webhook_service import WebhookService

FIXED_NOW = "2026-01-01T12:00:00+00:00"


class FakeMessenger:
    """Records outbound messages; can be told to fail like a broken gateway."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.fail = False

    def send_text(self, chat_id: str, text: str) -> Dict[str, Any]:
        return self._record(chat_id, text, ())

    def send_text_with_buttons(self, chat_id: str, text: str, buttons: Sequence[Button]) -> Dict[str, Any]:
        return self._record(chat_id, text, tuple(buttons))

    def _record(self, chat_id: str, text: str, buttons: Sequence[Button]) -> Dict[str, Any]:
        if self.fail:
            raise DeliveryError("gateway unavailable")
        self.sent.append({"chat_id": chat_id, "text": text, "buttons": buttons})
        return {"idMessage": f"msg-{len(self.sent)}"}

    @property
    def last(self) -> Dict[str, Any]:
        return self.sent[-1]


def make_body(text=None, chat_id="972500000001@c.us", sender=None, field="textMessageData"):
    message_data: Dict[str, Any] = {}
    if text is not None:
        key = {
            "textMessageData": "textMessage",
            "extendedTextMessageData": "text",
            "buttonTextData": "buttonText",
        }[field]
        message_data[field] = {key: text}
    return {
        "typeWebhook": "incomingMessageReceived",
        "senderData": {"chatId": chat_id, "sender": sender or chat_id},
        "messageData": message_data,
    }


@pytest.fixture
def engine():
    return DialogueEngine(clock=lambda: FIXED_NOW)


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / "leads.db")
    db.initialise()
    return db


@pytest.fixture
def state_repository(database):
    return StateRepository(database)


@pytest.fixture
def lead_repository(database):
    return LeadRepository(database)


@pytest.fixture
def settings_repository(database):
    return SettingsRepository(database)


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def service(state_repository, lead_repository, settings_repository, engine, messenger):
    return WebhookService(
        state_repository,
        lead_repository,
        settings_repository,
        engine,
        messenger,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        green_api_instance_id="1101000001",
        green_api_token="test-token",
        green_api_url="https://api.green-api.com",
        green_api_buttons=False,
        database_path=tmp_path / "app.db",
        authorized_phone=None,
        port=3000,
        log_level="INFO",
        http_timeout_seconds=5,
    )


@pytest.fixture
def app(settings, messenger):
    flask_app = create_app(settings, messenger=messenger)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
