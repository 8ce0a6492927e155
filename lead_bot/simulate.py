"""Drive a local conversation through the webhook pipeline without Green API."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO

from lead_bot.config import DEFAULT_DATABASE_PATH
from lead_bot.database import Database
from lead_bot.models import Button
from lead_bot.repositories.lead_repository import LeadRepository
from lead_bot.repositories.settings_repository import SettingsRepository
from lead_bot.repositories.state_repository import StateRepository
from lead_bot.services.dialogue_engine import DialogueEngine
from lead_bot.services.green_api_client import render_numbered_buttons
from lead_bot.services.webhook_service import WebhookService


class ConsoleMessenger:
    """Prints outbound replies instead of delivering them."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout
        self._counter = 0

    def send_text(self, chat_id: str, text: str) -> Dict[str, Any]:
        self._counter += 1
        self._stream.write(f"[bot -> {chat_id}] {text}\n")
        return {"idMessage": f"local-{self._counter}"}

    def send_text_with_buttons(self, chat_id: str, text: str, buttons: Sequence[Button]) -> Dict[str, Any]:
        return self.send_text(chat_id, render_numbered_buttons(text, buttons))


def webhook_body(phone: str, text: str) -> Dict[str, Any]:
    chat_id = f"{phone}@c.us"
    return {
        "typeWebhook": "incomingMessageReceived",
        "senderData": {"chatId": chat_id, "sender": chat_id},
        "messageData": {
            "typeMessage": "textMessage",
            "textMessageData": {"textMessage": text},
        },
    }


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chat with the lead bot locally; replies are printed instead of sent."
    )
    parser.add_argument("phone", help="Phone number (digits) to simulate the conversation for.")
    parser.add_argument(
        "--database",
        type=Path,
        default=Path(os.environ.get("DATABASE_PATH") or DEFAULT_DATABASE_PATH),
        help="SQLite file used for states and leads (defaults to env DATABASE_PATH).",
    )
    parser.add_argument(
        "--message",
        action="append",
        dest="messages",
        help="Message to send; repeat for several turns. Reads stdin lines when omitted.",
    )
    return parser.parse_args(argv)


def run(phone: str, messages: Iterable[str], service: WebhookService, stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stdout
    for message in messages:
        text = message.rstrip("\n")
        stream.write(f"[{phone}] {text}\n")
        outcome = service.process_webhook(webhook_body(phone, text))
        if outcome.ignored:
            stream.write(f"(ignored: {outcome.reason})\n")
        elif outcome.complete:
            stream.write("(conversation complete)\n")


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    database = Database(args.database)
    database.initialise()
    service = WebhookService(
        StateRepository(database),
        LeadRepository(database),
        SettingsRepository(database),
        DialogueEngine(),
        ConsoleMessenger(),
    )
    run(args.phone, args.messages if args.messages else sys.stdin, service)


if __name__ == "__main__":
    main()
