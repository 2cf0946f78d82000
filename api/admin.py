import logging

from flask import Blueprint, abort, current_app

bp = Blueprint("admin", __name__)

logger = logging.getLogger(__name__)


@bp.post("/admin/reset")
def reset():
    """
    Delete every account (dev platform only).
    ---
    tags:
      - Admin
    responses:
      200: { description: Accounts deleted }
      403: { description: Not a dev platform }
    """
    if current_app.config.get("PLATFORM") != "dev":
        abort(403, description="Forbidden")
    deleted = current_app.extensions["storage"].reset_accounts()
    logger.info("Reset: deleted %d accounts", deleted)
    return {"deleted": deleted}, 200
