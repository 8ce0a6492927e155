"""Data transfer objects for conversation state, leads and collected requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


class Stage:
    """Dialogue stages persisted in ``ConversationState.state``."""

    IDLE = "idle"
    WAITING_ORDER_TYPE = "waiting_order_type"
    WAITING_PACKAGE_OR_TICKETS = "waiting_package_or_tickets"
    WAITING_TICKETS_GAME = "waiting_tickets_game"
    WAITING_TICKETS_AMOUNT = "waiting_tickets_amount"
    WAITING_PACKAGE_DETAILS = "waiting_package_details"
    WAITING_URGENCY_GENERAL = "waiting_urgency_general"
    WAITING_GENERAL_REQUEST = "waiting_general_request"
    DONE = "done"


class DataKey:
    """Keys of the answers accumulated in ``ConversationState.data``."""

    ORDER_TYPE = "order_type"
    REQUEST_TYPE = "request_type"
    TICKETS_GAME = "tickets_game"
    TICKETS_AMOUNT = "tickets_amount"
    PACKAGE_GAMES = "package_games"
    PACKAGE_PEOPLE = "package_people"
    PHONE_NUMBER = "phone_number"
    PACKAGE_NOTES = "package_notes"
    IS_URGENT = "is_urgent"
    GENERAL_REQUEST = "general_request"


@dataclass(frozen=True)
class ConversationState:
    phone: str
    state: str = Stage.IDLE
    data: Dict[str, Any] = field(default_factory=dict)
    updated_at: Optional[str] = None

    @classmethod
    def fresh(cls, phone: str) -> "ConversationState":
        return cls(phone=phone)


@dataclass(frozen=True)
class Button:
    """Quick-reply affordance offered next to a prompt."""

    id: str
    label: str


@dataclass(frozen=True)
class TurnResult:
    next_state: ConversationState
    reply: Optional[str]
    buttons: Tuple[Button, ...] = ()
    complete: bool = False


@dataclass(frozen=True)
class Lead:
    phone: str
    game: str
    amount: int
    is_urgent: bool
    is_new_customer: bool
    raw: Dict[str, Any]
    created_at: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class TicketRequest:
    game: str
    amount: int


@dataclass(frozen=True)
class PackageRequest:
    games: str
    people: str
    callback_phone: str
    notes: str = ""


@dataclass(frozen=True)
class GeneralRequest:
    request: Optional[str]
    is_urgent: bool


CollectedRequest = Union[TicketRequest, PackageRequest, GeneralRequest]
