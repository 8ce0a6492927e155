"""Maps a completed conversation onto the lead record stored for follow-up."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional

from ..models import (
    CollectedRequest,
    ConversationState,
    DataKey,
    GeneralRequest,
    Lead,
    PackageRequest,
    TicketRequest,
)
from .prompts import GENERAL_REQUEST_LABEL

LOGGER = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*(\d+)")


def collected_request(data: Mapping[str, Any]) -> Optional[CollectedRequest]:
    """Returns the request variant whose required answers are all present."""

    request_type = data.get(DataKey.REQUEST_TYPE)
    if request_type == "tickets":
        game = data.get(DataKey.TICKETS_GAME)
        amount = data.get(DataKey.TICKETS_AMOUNT)
        if game and amount:
            return TicketRequest(game=game, amount=int(amount))
        return None
    if request_type == "package":
        games = data.get(DataKey.PACKAGE_GAMES)
        callback_phone = data.get(DataKey.PHONE_NUMBER)
        if games and callback_phone:
            return PackageRequest(
                games=games,
                people=data.get(DataKey.PACKAGE_PEOPLE) or "",
                callback_phone=callback_phone,
                notes=data.get(DataKey.PACKAGE_NOTES) or "",
            )
        return None
    general_request = data.get(DataKey.GENERAL_REQUEST)
    is_urgent = bool(data.get(DataKey.IS_URGENT))
    if general_request or (is_urgent and data.get(DataKey.ORDER_TYPE) == "existing"):
        return GeneralRequest(request=general_request or None, is_urgent=is_urgent)
    return None


def _people_count(people: str) -> int:
    match = _LEADING_INT.match(people)
    count = int(match.group(1)) if match else 0
    return count or 1


def build_lead(
    state: ConversationState,
    sender_phone: str,
    body: Optional[Dict[str, Any]] = None,
) -> Optional[Lead]:
    data = state.data
    request = collected_request(data)
    is_new_customer = data.get(DataKey.ORDER_TYPE) == "new"
    provenance: Dict[str, Any] = {"body": body} if body is not None else {}
    if isinstance(request, TicketRequest):
        return Lead(
            phone=sender_phone,
            game=request.game,
            amount=request.amount,
            is_urgent=False,
            is_new_customer=is_new_customer,
            raw={**data, "type": "tickets", **provenance},
        )
    if isinstance(request, PackageRequest):
        return Lead(
            phone=request.callback_phone,
            game=request.games,
            amount=_people_count(request.people),
            is_urgent=False,
            is_new_customer=is_new_customer,
            raw={**data, "type": "package", **provenance},
        )
    if isinstance(request, GeneralRequest):
        return Lead(
            phone=sender_phone,
            game=request.request or GENERAL_REQUEST_LABEL,
            amount=0,
            is_urgent=request.is_urgent,
            is_new_customer=False,
            raw={**data, "type": "general", **provenance},
        )
    LOGGER.warning("Completed conversation for phone=%s has no recognisable request: %s", state.phone, data)
    return None
