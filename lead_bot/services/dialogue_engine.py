"""Deterministic transition function for the lead-intake dialogue."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from ..models import Button, ConversationState, DataKey, Stage, TurnResult
from . import prompts

LOGGER = logging.getLogger(__name__)

_GAME_AND_AMOUNT = re.compile(r"(\D+)(\d+)")
_NON_DIGITS = re.compile(r"\D")
_WHITESPACE = re.compile(r"\s+")

MIN_PHONE_DIGITS = 8
MAX_AMOUNT_DIGITS = 6


def iso_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _mentions(text: str, keywords: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def _digits(text: str) -> str:
    return _NON_DIGITS.sub("", text)


def _amount(digits: str) -> int:
    """Returns the ticket amount, or 0 when it is missing or too long to be real."""
    significant = digits.lstrip("0")
    if not significant or len(significant) > MAX_AMOUNT_DIGITS:
        return 0
    return int(significant)


class DialogueEngine:
    """Computes the next conversation state for one inbound text.

    The engine has no side effects: callers persist ``TurnResult.next_state``,
    send ``TurnResult.reply`` and record a lead when ``TurnResult.complete`` is
    set. Unrecognized input is answered with a re-prompt and never raises.
    """

    def __init__(self, clock: Callable[[], str] = iso_now) -> None:
        self._clock = clock
        self._handlers: Dict[str, Callable[[ConversationState, str], TurnResult]] = {
            Stage.IDLE: self._on_idle,
            Stage.WAITING_ORDER_TYPE: self._on_order_type,
            Stage.WAITING_PACKAGE_OR_TICKETS: self._on_package_or_tickets,
            Stage.WAITING_TICKETS_GAME: self._on_tickets_game,
            Stage.WAITING_TICKETS_AMOUNT: self._on_tickets_amount,
            Stage.WAITING_PACKAGE_DETAILS: self._on_package_details,
            Stage.WAITING_URGENCY_GENERAL: self._on_urgency,
            Stage.WAITING_GENERAL_REQUEST: self._on_general_request,
            Stage.DONE: self._on_done,
        }

    def next_state(self, current: ConversationState, incoming: Optional[str]) -> TurnResult:
        text = (incoming or "").strip()
        handler = self._handlers.get(current.state)
        if handler is None:
            LOGGER.warning("Unknown stage '%s' for phone=%s; restarting", current.state, current.phone)
            return self._reset(current, prompts.RESTARTED)
        return handler(current, text)

    # Transition helpers

    def _move(
        self,
        current: ConversationState,
        stage: str,
        reply: str,
        *,
        buttons: Sequence[Button] = (),
        complete: bool = False,
        **updates: Any,
    ) -> TurnResult:
        data = dict(current.data)
        data.update(updates)
        next_state = replace(current, state=stage, data=data, updated_at=self._clock())
        return TurnResult(next_state, reply, tuple(buttons), complete)

    def _collect(self, current: ConversationState, reply: str, **updates: Any) -> TurnResult:
        data = dict(current.data)
        data.update(updates)
        return TurnResult(replace(current, data=data, updated_at=self._clock()), reply)

    @staticmethod
    def _stay(current: ConversationState, reply: str, buttons: Sequence[Button] = ()) -> TurnResult:
        return TurnResult(current, reply, tuple(buttons))

    def _reset(self, current: ConversationState, reply: str) -> TurnResult:
        next_state = replace(current, state=Stage.IDLE, data={}, updated_at=self._clock())
        return TurnResult(next_state, reply)

    # Stage handlers

    def _on_idle(self, current: ConversationState, text: str) -> TurnResult:
        return self._move(
            current,
            Stage.WAITING_ORDER_TYPE,
            prompts.ASK_ORDER_TYPE,
            buttons=prompts.ORDER_TYPE_BUTTONS,
        )

    def _on_order_type(self, current: ConversationState, text: str) -> TurnResult:
        if _mentions(text, prompts.NEW_ORDER_KEYWORDS):
            return self._move(
                current,
                Stage.WAITING_PACKAGE_OR_TICKETS,
                prompts.ASK_REQUEST_TYPE,
                buttons=prompts.REQUEST_TYPE_BUTTONS,
                **{DataKey.ORDER_TYPE: "new"},
            )
        if _mentions(text, prompts.EXISTING_ORDER_KEYWORDS):
            return self._move(
                current,
                Stage.WAITING_URGENCY_GENERAL,
                prompts.ASK_URGENCY,
                buttons=prompts.URGENCY_BUTTONS,
                **{DataKey.ORDER_TYPE: "existing"},
            )
        return self._stay(current, prompts.REASK_ORDER_TYPE, prompts.ORDER_TYPE_BUTTONS)

    def _on_package_or_tickets(self, current: ConversationState, text: str) -> TurnResult:
        if _mentions(text, prompts.TICKETS_KEYWORDS):
            return self._move(
                current,
                Stage.WAITING_TICKETS_GAME,
                prompts.ASK_TICKETS_GAME,
                **{DataKey.REQUEST_TYPE: "tickets"},
            )
        if _mentions(text, prompts.PACKAGE_KEYWORDS):
            return self._move(
                current,
                Stage.WAITING_PACKAGE_DETAILS,
                prompts.ASK_PACKAGE_DETAILS,
                **{DataKey.REQUEST_TYPE: "package"},
            )
        return self._stay(current, prompts.REASK_REQUEST_TYPE, prompts.REQUEST_TYPE_BUTTONS)

    def _on_tickets_game(self, current: ConversationState, text: str) -> TurnResult:
        if not text:
            return self._stay(current, prompts.ASK_TICKETS_GAME)
        match = _GAME_AND_AMOUNT.match(text)
        if match:
            game = match.group(1).strip()
            if len(match.group(2).lstrip("0")) > MAX_AMOUNT_DIGITS:
                return self._stay(current, prompts.ASK_TICKETS_GAME)
            amount = _amount(match.group(2))
            if game and amount > 0:
                return self._move(
                    current,
                    Stage.DONE,
                    prompts.tickets_confirmation(game, amount),
                    complete=True,
                    **{DataKey.TICKETS_GAME: game, DataKey.TICKETS_AMOUNT: amount},
                )
        return self._move(
            current,
            Stage.WAITING_TICKETS_AMOUNT,
            prompts.ASK_TICKETS_AMOUNT,
            **{DataKey.TICKETS_GAME: text},
        )

    def _on_tickets_amount(self, current: ConversationState, text: str) -> TurnResult:
        amount = _amount(_digits(text))
        if amount <= 0:
            return self._stay(current, prompts.REASK_TICKETS_AMOUNT)
        game = current.data.get(DataKey.TICKETS_GAME, "")
        return self._move(
            current,
            Stage.DONE,
            prompts.tickets_confirmation(game, amount),
            complete=True,
            **{DataKey.TICKETS_AMOUNT: amount},
        )

    def _on_package_details(self, current: ConversationState, text: str) -> TurnResult:
        data = current.data
        if not data.get(DataKey.PACKAGE_GAMES):
            if not text:
                return self._stay(current, prompts.ASK_PACKAGE_DETAILS)
            return self._collect(current, prompts.ASK_PACKAGE_PEOPLE, **{DataKey.PACKAGE_GAMES: text})
        if not data.get(DataKey.PACKAGE_PEOPLE):
            if not text:
                return self._stay(current, prompts.ASK_PACKAGE_PEOPLE)
            return self._collect(current, prompts.ASK_PACKAGE_PHONE, **{DataKey.PACKAGE_PEOPLE: text})
        if not data.get(DataKey.PHONE_NUMBER):
            digits = _digits(text)
            if len(digits) < MIN_PHONE_DIGITS:
                return self._stay(current, prompts.REASK_PACKAGE_PHONE)
            return self._collect(current, prompts.ASK_PACKAGE_NOTES, **{DataKey.PHONE_NUMBER: digits})
        if not text:
            return self._stay(current, prompts.ASK_PACKAGE_NOTES)
        notes = "" if text == prompts.NO_NOTES_KEYWORD else text
        return self._move(
            current,
            Stage.DONE,
            prompts.package_summary(
                data[DataKey.PACKAGE_GAMES],
                data[DataKey.PACKAGE_PEOPLE],
                data[DataKey.PHONE_NUMBER],
                notes,
            ),
            complete=True,
            **{DataKey.PACKAGE_NOTES: notes},
        )

    def _on_urgency(self, current: ConversationState, text: str) -> TurnResult:
        normalized = _WHITESPACE.sub(" ", text).strip().lower()
        if normalized in prompts.URGENT_EXACT:
            return self._urgent(current)
        if normalized in prompts.NOT_URGENT_EXACT:
            return self._not_urgent(current)
        # "לא דחוף" embedded in a longer sentence still contains "דחוף" and
        # resolves to urgent.
        is_urgent = _mentions(text, prompts.URGENT_KEYWORDS)
        is_not_urgent = _mentions(text, prompts.NOT_URGENT_KEYWORDS) and not _mentions(
            text, (prompts.URGENT_MARKER,)
        )
        if is_urgent and not is_not_urgent:
            return self._urgent(current)
        if is_not_urgent:
            return self._not_urgent(current)
        return self._stay(current, prompts.REASK_URGENCY, prompts.URGENCY_BUTTONS)

    def _urgent(self, current: ConversationState) -> TurnResult:
        return self._move(
            current,
            Stage.DONE,
            prompts.EMERGENCY_CONTACT,
            complete=True,
            **{DataKey.IS_URGENT: True},
        )

    def _not_urgent(self, current: ConversationState) -> TurnResult:
        return self._move(
            current,
            Stage.WAITING_GENERAL_REQUEST,
            prompts.ASK_GENERAL_REQUEST,
            **{DataKey.IS_URGENT: False},
        )

    def _on_general_request(self, current: ConversationState, text: str) -> TurnResult:
        if not text:
            return self._stay(current, prompts.ASK_GENERAL_REQUEST)
        return self._move(
            current,
            Stage.DONE,
            prompts.GENERAL_REQUEST_RECEIVED,
            complete=True,
            **{DataKey.GENERAL_REQUEST: text},
        )

    def _on_done(self, current: ConversationState, text: str) -> TurnResult:
        return self._reset(current, prompts.ANYTHING_ELSE)
