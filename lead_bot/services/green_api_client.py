"""Green API client used to deliver replies to WhatsApp chats."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ..models import Button

LOGGER = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when the gateway could not accept an outbound message."""


def render_numbered_buttons(text: str, buttons: Sequence[Button]) -> str:
    options = "\n".join(f"{index}. {button.label}" for index, button in enumerate(buttons, start=1))
    return f"{text}\n\n{options}" if options else text


class GreenApiClient:
    """Small wrapper around the Green API instance endpoints."""

    DEFAULT_BASE_URL = "https://api.green-api.com"

    def __init__(
        self,
        instance_id: str,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: int = 15,
        interactive_buttons: bool = False,
    ) -> None:
        self._instance_id = instance_id
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._interactive_buttons = interactive_buttons

    def _url(self, method: str) -> str:
        return f"{self._base_url}/waInstance{self._instance_id}/{method}/{self._token}"

    def send_text(self, chat_id: str, text: str) -> Dict[str, Any]:
        return self._post("sendMessage", {"chatId": chat_id, "message": text})

    def send_text_with_buttons(
        self,
        chat_id: str,
        text: str,
        buttons: Sequence[Button],
    ) -> Dict[str, Any]:
        if not buttons:
            return self.send_text(chat_id, text)
        if self._interactive_buttons:
            payload = {
                "chatId": chat_id,
                "message": text,
                "buttons": [
                    {"buttonId": button.id, "buttonText": button.label}
                    for button in buttons
                ],
            }
            try:
                return self._post("sendButtons", payload)
            except DeliveryError:
                LOGGER.warning("Interactive buttons rejected for chat=%s; sending numbered list", chat_id)
        return self.send_text(chat_id, render_numbered_buttons(text, buttons))

    def _post(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        LOGGER.debug("Sending Green API %s payload: %s", method, payload)
        response: Optional[requests.Response] = None
        try:
            response = self._session.post(self._url(method), json=payload, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            body = response.text if response is not None else ""
            LOGGER.error("Green API error on %s: %s | Response: %s", method, exc, body)
            raise DeliveryError(f"Failed to {method}: {exc}") from exc
