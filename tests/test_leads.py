"""
Tests for mapping collected answers onto lead records.
"""

import pytest

from lead_bot.models import (
    ConversationState,
    DataKey,
    GeneralRequest,
    PackageRequest,
    Stage,
    TicketRequest,
)
from lead_bot.services.leads import build_lead, collected_request
from lead_bot.services.prompts import GENERAL_REQUEST_LABEL

SENDER = "972500000001"


def done(**data):
    return ConversationState(phone=SENDER, state=Stage.DONE, data=data)


def test_ticket_request_variant():
    data = {DataKey.REQUEST_TYPE: "tickets", DataKey.TICKETS_GAME: "Arsenal", DataKey.TICKETS_AMOUNT: 3}
    assert collected_request(data) == TicketRequest(game="Arsenal", amount=3)


def test_incomplete_ticket_request_has_no_variant():
    assert collected_request({DataKey.REQUEST_TYPE: "tickets", DataKey.TICKETS_GAME: "Arsenal"}) is None


def test_package_request_variant():
    data = {
        DataKey.REQUEST_TYPE: "package",
        DataKey.PACKAGE_GAMES: "Chess",
        DataKey.PACKAGE_PEOPLE: "5",
        DataKey.PHONE_NUMBER: "12345678",
        DataKey.PACKAGE_NOTES: "",
    }
    assert collected_request(data) == PackageRequest("Chess", "5", "12345678", "")


def test_general_request_variant():
    data = {DataKey.ORDER_TYPE: "existing", DataKey.IS_URGENT: False, DataKey.GENERAL_REQUEST: "Refund"}
    assert collected_request(data) == GeneralRequest(request="Refund", is_urgent=False)


def test_non_urgent_without_request_has_no_variant():
    assert collected_request({DataKey.ORDER_TYPE: "existing", DataKey.IS_URGENT: False}) is None


def test_ticket_lead():
    state = done(
        **{
            DataKey.ORDER_TYPE: "new",
            DataKey.REQUEST_TYPE: "tickets",
            DataKey.TICKETS_GAME: "Arsenal",
            DataKey.TICKETS_AMOUNT: 3,
        }
    )

    lead = build_lead(state, SENDER, {"senderData": {}})

    assert lead.phone == SENDER
    assert (lead.game, lead.amount, lead.is_urgent, lead.is_new_customer) == ("Arsenal", 3, False, True)
    assert lead.raw["type"] == "tickets"
    assert lead.raw["body"] == {"senderData": {}}
    assert lead.raw[DataKey.TICKETS_GAME] == "Arsenal"


@pytest.mark.parametrize("people,expected", [("5", 5), ("12 people", 12), ("many", 1), ("0", 1)])
def test_package_lead_amount_from_people(people, expected):
    state = done(
        **{
            DataKey.ORDER_TYPE: "new",
            DataKey.REQUEST_TYPE: "package",
            DataKey.PACKAGE_GAMES: "Chess",
            DataKey.PACKAGE_PEOPLE: people,
            DataKey.PHONE_NUMBER: "0501234567",
        }
    )

    lead = build_lead(state, SENDER)

    assert lead.phone == "0501234567"
    assert lead.amount == expected
    assert "body" not in lead.raw


def test_urgent_lead_uses_default_label():
    lead = build_lead(done(**{DataKey.ORDER_TYPE: "existing", DataKey.IS_URGENT: True}), SENDER)

    assert lead.game == GENERAL_REQUEST_LABEL
    assert lead.is_urgent is True
    assert lead.is_new_customer is False
    assert lead.amount == 0
    assert lead.raw["type"] == "general"


def test_unrecognised_data_yields_no_lead():
    assert build_lead(done(), SENDER) is None
