import logging
from flask import Blueprint

from .auth import token_required
from .models import User
from .responses import envelope

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__, url_prefix="/api/users")


@bp.route("/stats", methods=["GET"])
@token_required
def get_stats(user):
    stats = User.get_stats(user.id)
    logger.debug(f"Stats fetched for user {user.id}: {stats}")
    return envelope(stats)
