from __future__ import annotations
from functools import wraps
from flask import request, g, current_app
from utils.security import get_bearer_token


def jwt_required():
    """
    Require a valid access token in ``Authorization: Bearer <token>``.
    Sets g.current_user_id (uuid.UUID). Failures raise Unauthenticated /
    MissingCredential, which the error handlers turn into a 401.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = get_bearer_token(request.headers)
            sessions = current_app.extensions["session_manager"]
            g.current_user_id = sessions.authenticate(token)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
