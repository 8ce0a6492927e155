"""Service layer that turns Green API webhook events into dialogue turns."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from ..models import Button, ConversationState, Stage, TurnResult
from ..repositories.lead_repository import LeadRepository
from ..repositories.settings_repository import SettingsRepository
from ..repositories.state_repository import StateRepository
from .dialogue_engine import DialogueEngine
from .leads import build_lead
from .phone_locks import PhoneLocks

LOGGER = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


class InvalidPayloadError(ValueError):
    """Raised when a webhook body does not have the expected object shape."""


class Messenger(Protocol):
    def send_text(self, chat_id: str, text: str) -> Dict[str, Any]: ...

    def send_text_with_buttons(
        self, chat_id: str, text: str, buttons: Sequence[Button]
    ) -> Dict[str, Any]: ...


@dataclass(frozen=True)
class WebhookOutcome:
    ok: bool = True
    ignored: bool = False
    reason: Optional[str] = None
    state: Optional[str] = None
    complete: bool = False
    replied: bool = False

    @classmethod
    def skipped(cls, reason: str) -> "WebhookOutcome":
        return cls(ignored=True, reason=reason)

    def as_dict(self) -> Dict[str, Any]:
        if self.ignored:
            return {"ok": self.ok, "ignored": True, "reason": self.reason}
        return {
            "ok": self.ok,
            "state": self.state,
            "complete": self.complete,
            "replied": self.replied,
        }


def normalize_phone(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_group_chat(chat_id: str) -> bool:
    return chat_id.endswith("@g.us") or "-" in chat_id.split("@", 1)[0]


def _section(message_data: Mapping[str, Any], key: str, field_name: str) -> str:
    section = message_data.get(key)
    if not isinstance(section, Mapping):
        return ""
    value = section.get(field_name)
    return value.strip() if isinstance(value, str) else ""


def extract_text(message_data: Mapping[str, Any]) -> str:
    return (
        _section(message_data, "buttonTextData", "buttonText")
        or _section(message_data, "textMessageData", "textMessage")
        or _section(message_data, "extendedTextMessageData", "text")
    )


class WebhookService:
    """Coordinates authorisation, state persistence, lead recording and replies."""

    def __init__(
        self,
        state_repository: StateRepository,
        lead_repository: LeadRepository,
        settings_repository: SettingsRepository,
        engine: DialogueEngine,
        messenger: Messenger,
        *,
        authorized_phone: Optional[str] = None,
        locks: Optional[PhoneLocks] = None,
    ) -> None:
        self._states = state_repository
        self._leads = lead_repository
        self._settings = settings_repository
        self._engine = engine
        self._messenger = messenger
        self._authorized_phone = normalize_phone(authorized_phone)
        self._locks = locks or PhoneLocks()
        self._failures: Counter = Counter()
        self._failures_lock = Lock()

    def failure_counts(self) -> Dict[str, int]:
        with self._failures_lock:
            return dict(self._failures)

    def process_webhook(self, payload: Any) -> WebhookOutcome:
        if not self._is_enabled():
            LOGGER.info("Bot disabled; ignoring webhook")
            return WebhookOutcome.skipped("disabled")
        if not isinstance(payload, Mapping):
            raise InvalidPayloadError("Webhook body must be a JSON object")
        sender_data = payload.get("senderData") or {}
        message_data = payload.get("messageData") or {}
        if not isinstance(sender_data, Mapping) or not isinstance(message_data, Mapping):
            raise InvalidPayloadError("senderData and messageData must be objects")

        chat_id = str(sender_data.get("chatId") or "")
        sender = str(sender_data.get("sender") or "")
        if is_group_chat(chat_id):
            LOGGER.info("Ignoring group chat message from chat=%s", chat_id)
            return WebhookOutcome.skipped("group")
        if not self._is_authorized(chat_id, sender):
            LOGGER.info("Ignoring message from unauthorised chat=%s sender=%s", chat_id, sender)
            return WebhookOutcome.skipped("unauthorized")
        phone = normalize_phone(chat_id) or normalize_phone(sender)
        if not phone:
            LOGGER.warning("Webhook without a sender identity; ignoring")
            return WebhookOutcome.skipped("no_sender")

        text = extract_text(message_data)
        reply_to = chat_id or sender
        with self._locks.hold(phone):
            current = self._load_state(phone)
            if not text and current.state != Stage.IDLE:
                LOGGER.debug("Ignoring message without text for phone=%s in stage=%s", phone, current.state)
                return WebhookOutcome.skipped("empty")
            result = self._engine.next_state(current, text)
            LOGGER.info(
                "Turn for phone=%s: %s -> %s (complete=%s)",
                phone,
                current.state,
                result.next_state.state,
                result.complete,
            )
            self._save_state(result.next_state)
            if result.complete:
                self._record_lead(result.next_state, phone, dict(payload))
            replied = self._send_reply(reply_to, result)
        return WebhookOutcome(
            state=result.next_state.state,
            complete=result.complete,
            replied=replied,
        )

    def _count_failure(self, kind: str) -> None:
        with self._failures_lock:
            self._failures[kind] += 1

    def _is_enabled(self) -> bool:
        try:
            return self._settings.get_enabled_flag()
        except Exception:
            LOGGER.exception("Failed to read bot enabled flag; assuming enabled")
            self._count_failure("flag_read")
            return True

    def _is_authorized(self, chat_id: str, sender: str) -> bool:
        if not self._authorized_phone:
            return True
        return self._authorized_phone in (normalize_phone(chat_id), normalize_phone(sender))

    def _load_state(self, phone: str) -> ConversationState:
        try:
            stored = self._states.get_state(phone)
        except Exception:
            LOGGER.exception("Failed to load state for phone=%s; starting fresh", phone)
            self._count_failure("state_read")
            stored = None
        return stored or ConversationState.fresh(phone)

    def _save_state(self, state: ConversationState) -> None:
        try:
            self._states.put_state(state)
        except Exception:
            LOGGER.exception("Failed to save state for phone=%s stage=%s", state.phone, state.state)
            self._count_failure("state_write")

    def _record_lead(self, state: ConversationState, phone: str, body: Dict[str, Any]) -> None:
        try:
            lead = build_lead(state, phone, body)
            if lead is None:
                return
            stored = self._leads.record_lead(lead)
            LOGGER.info("Recorded %s lead id=%s for phone=%s", lead.raw.get("type"), stored.id, phone)
        except Exception:
            LOGGER.exception("Failed to record lead for phone=%s", phone)
            self._count_failure("lead_record")

    def _send_reply(self, chat_id: str, result: TurnResult) -> bool:
        if not result.reply:
            return False
        try:
            if result.buttons:
                self._messenger.send_text_with_buttons(chat_id, result.reply, result.buttons)
            else:
                self._messenger.send_text(chat_id, result.reply)
        except Exception:
            LOGGER.exception("Failed to send reply to chat=%s", chat_id)
            self._count_failure("send")
            return False
        return True
