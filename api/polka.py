"""
Polka payment webhooks. Polka authenticates with ``Authorization: ApiKey <key>``.
"""
from __future__ import annotations

import hmac
import uuid

from flask import Blueprint, request, abort, current_app

from api.errors import json_object
from models.schemas.user import PolkaEventSchema
from utils.exceptions import Unauthenticated
from utils.security import get_api_key

UPGRADE_EVENT = "user.upgraded"

bp = Blueprint("polka", __name__)

polka_event_schema = PolkaEventSchema()


@bp.post("/polka/webhooks")
def polka_webhook():
    """
    Receive a Polka event; ``user.upgraded`` marks the account as Chirpy Red.
    ---
    tags:
      - Webhooks
    security:
      - ApiKey: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            event: { type: string }
            data:
              type: object
              properties:
                user_id: { type: string }
    responses:
      204: { description: Accepted }
      400: { description: Bad user id }
      401: { description: Unauthorized }
      404: { description: Unknown user }
    """
    api_key = get_api_key(request.headers)
    expected = current_app.config.get("POLKA_KEY") or ""
    if not expected or not hmac.compare_digest(api_key.encode(), expected.encode()):
        raise Unauthenticated()

    payload = json_object()
    event = polka_event_schema.load(payload)
    if event["event"] != UPGRADE_EVENT:
        return ("", 204)

    try:
        user_id = uuid.UUID(str(event["data"].get("user_id")))
    except ValueError:
        abort(400, description="data.user_id must be a UUID")

    if not current_app.extensions["session_manager"].upgrade_account(user_id):
        abort(404, description="User not found")
    return ("", 204)
