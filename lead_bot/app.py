"""Flask application entry point for the lead-intake bot."""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Flask, abort, jsonify, request

from lead_bot.config import Settings
from lead_bot.database import Database
from lead_bot.models import ConversationState, Lead
from lead_bot.repositories.lead_repository import LeadRepository
from lead_bot.repositories.settings_repository import SettingsRepository
from lead_bot.repositories.state_repository import StateRepository
from lead_bot.services.dialogue_engine import DialogueEngine
from lead_bot.services.green_api_client import GreenApiClient
from lead_bot.services.webhook_service import Messenger, WebhookService

LOGGER = logging.getLogger(__name__)


def _lead_to_dict(lead: Lead) -> Dict[str, Any]:
    return {
        "id": lead.id,
        "phone": lead.phone,
        "game": lead.game,
        "amount": lead.amount,
        "is_urgent": lead.is_urgent,
        "is_new_customer": lead.is_new_customer,
        "raw": lead.raw,
        "created_at": lead.created_at,
    }


def _state_to_dict(state: ConversationState) -> Dict[str, Any]:
    return {
        "phone": state.phone,
        "state": state.state,
        "data": state.data,
        "updated_at": state.updated_at,
    }


def create_app(
    settings: Optional[Settings] = None,
    *,
    messenger: Optional[Messenger] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    database = Database(settings.database_path)
    database.initialise()
    state_repository = StateRepository(database)
    lead_repository = LeadRepository(database)
    settings_repository = SettingsRepository(database)
    if messenger is None:
        messenger = GreenApiClient(
            settings.green_api_instance_id,
            settings.green_api_token,
            base_url=settings.green_api_url,
            timeout=settings.http_timeout_seconds,
            interactive_buttons=settings.green_api_buttons,
        )
    webhook_service = WebhookService(
        state_repository,
        lead_repository,
        settings_repository,
        DialogueEngine(),
        messenger,
        authorized_phone=settings.authorized_phone,
    )
    LOGGER.info(
        "Lead bot configured: database=%s authorised_phone=%s interactive_buttons=%s",
        database.path,
        settings.authorized_phone or "ANY",
        settings.green_api_buttons,
    )

    app = Flask(__name__)
    app.config["WEBHOOK_SERVICE"] = webhook_service
    started_at = time.monotonic()

    @app.route("/", methods=["GET"])
    def root() -> str:
        return "WhatsApp lead bot is running ✔️"

    @app.route("/health", methods=["GET"])
    def health() -> Dict[str, Any]:
        try:
            enabled = settings_repository.get_enabled_flag()
        except Exception:
            LOGGER.exception("Health check could not read the enabled flag")
            enabled = None
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
            "uptime": round(time.monotonic() - started_at, 3),
            "pid": os.getpid(),
            "enabled": enabled,
            "failures": webhook_service.failure_counts(),
        }

    @app.route("/webhook/greenapi", methods=["POST"])
    def webhook() -> Tuple[Any, int]:
        payload = request.get_json(silent=True)
        try:
            outcome = webhook_service.process_webhook(payload)
        except Exception:
            LOGGER.exception("Unexpected error while processing webhook")
            return jsonify({"ok": False, "error": "Internal server error"}), 500
        return jsonify(outcome.as_dict()), 200

    @app.route("/bot/enabled", methods=["GET"])
    def get_enabled() -> Dict[str, Any]:
        return {"ok": True, "enabled": settings_repository.get_enabled_flag()}

    @app.route("/bot/enabled", methods=["POST"])
    def set_enabled() -> Tuple[Any, int]:
        payload = request.get_json(silent=True) or {}
        enabled = payload.get("enabled") if isinstance(payload, dict) else None
        if not isinstance(enabled, bool):
            return jsonify({"ok": False, "error": "enabled must be a boolean"}), 400
        settings_repository.set_enabled_flag(enabled)
        app.logger.warning("Bot %s via /bot/enabled", "enabled" if enabled else "disabled")
        return jsonify({"ok": True, "enabled": enabled}), 200

    @app.route("/leads", methods=["GET"])
    def leads() -> Dict[str, Any]:
        limit_param = request.args.get("limit", "20")
        try:
            limit = max(1, int(limit_param))
        except ValueError:
            abort(400, "limit must be numeric")
        recent = lead_repository.fetch_recent(limit)
        app.logger.info("Leads endpoint returning %d entries", len(recent))
        return {"leads": [_lead_to_dict(lead) for lead in recent]}

    @app.route("/debug/db", methods=["GET"])
    def dump_database() -> Dict[str, Any]:
        return {
            "states": [_state_to_dict(state) for state in state_repository.list_states()],
            "leads": [_lead_to_dict(lead) for lead in lead_repository.fetch_all()],
        }

    @app.route("/debug/db", methods=["DELETE"])
    def reset_database() -> Dict[str, str]:
        state_repository.delete_all()
        lead_repository.delete_all()
        app.logger.warning("Conversation states and leads cleared via /debug/db")
        return {"status": "cleared"}

    return app


if __name__ == "__main__":
    _settings = Settings.from_env()
    create_app(_settings).run(host="0.0.0.0", port=_settings.port)
