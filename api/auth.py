"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh  (Authorization: Bearer <refresh token>)
- POST /auth/revoke   (Authorization: Bearer <refresh token>)

Access tokens are HS256 JWTs that live for an hour at most. Refresh tokens
are opaque 64-char hex strings stored in the refresh_tokens table; they
are not rotated on refresh and stay valid for 60 days unless revoked.
"""
from __future__ import annotations

from datetime import timedelta
from flask import Blueprint, request, jsonify, current_app

from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema
from api.errors import json_object
from utils.security import get_bearer_token
from utils.sessions import SessionManager

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()


def _sessions() -> SessionManager:
    return current_app.extensions["session_manager"]


@bp.post("/auth/register")
def register():
    """
    register a new account.
    ---
    tags:
      - Auth
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
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = json_object()
    data = user_create_schema.load(payload)

    user = _sessions().register(data["email"], data["password"])

    return jsonify(
        {
            "data": user_out_schema.dump(user)
        }
    ), 201


@bp.post("/auth/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
             expires_in_seconds: { type: integer }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = json_object()
    data = user_login_schema.load(payload)

    # Clamp the raw integer first; huge values overflow timedelta
    expires_in = None
    requested = data.get("expires_in_seconds")
    if requested is not None and requested > 0:
        max_seconds = int(_sessions().access_token_ttl.total_seconds())
        expires_in = timedelta(seconds=min(requested, max_seconds))

    result = _sessions().login(data["email"], data["password"], expires_in=expires_in)

    return jsonify(
        {
            "data": user_out_schema.dump(result.account),
            "access_token": result.access_token,
            "refresh_token": result.refresh_token,
            "token_type": "bearer",
            "expires_in": int(result.expires_in.total_seconds()),
        }
    ), 200


@bp.post("/auth/refresh")
def refresh():
    """
    Use a refresh token to obtain a new access token. The refresh token itself is kept.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK (returns a new access token)
      401:
        description: Unauthorized
    """
    token = get_bearer_token(request.headers)
    grant = _sessions().refresh(token)

    return jsonify(
        {
            "access_token": grant.access_token,
            "token_type": "bearer",
            "expires_in": int(grant.expires_in.total_seconds()),
        }
    ), 200


@bp.post("/auth/revoke")
def revoke():
    """
    Revoke a refresh token. Unknown or already revoked tokens also return 204.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Missing Authorization header
    """
    token = get_bearer_token(request.headers)
    _sessions().revoke(token)
    return ("", 204)
