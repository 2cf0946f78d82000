from __future__ import annotations

from flask import Blueprint, jsonify, g, current_app

from models.schemas.user import UserOutSchema, UserUpdateSchema
from api.errors import json_object
from utils.decorators import jwt_required
from utils.exceptions import Unauthenticated

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()


@bp.get("/users/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = current_app.extensions["storage"].get_account(g.current_user_id)
    if user is None:
        raise Unauthenticated("invalid or expired token")
    return jsonify(
        {
            "data": user_out_schema.dump(user)
        }
    ), 200


@bp.put("/users")
@jwt_required()
def update_me():
    """
    Change the email and password of the current user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      409: { description: Email already registered }
    """
    payload = json_object()
    data = user_update_schema.load(payload)

    user = current_app.extensions["session_manager"].update_credentials(
        g.current_user_id, data["email"], data["password"]
    )
    return jsonify(
        {
            "data": user_out_schema.dump(user)
        }
    ), 200
