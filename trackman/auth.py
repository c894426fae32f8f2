import logging
from collections import namedtuple
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from .errors import AuthenticationError, ForbiddenError, NotFoundError
from .models import User

logger = logging.getLogger(__name__)

Identity = namedtuple("Identity", ["id", "email", "name"])


def generate_token(user):
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user.id,
        "email": user.email,
        "name": user.name,
        "iat": now,
        "exp": now + timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET_KEY"], algorithm="HS256")


def _bearer_token():
    token = request.headers.get("Authorization")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token.strip() if token else None


def decode_token(token):
    payload = jwt.decode(token, current_app.config["JWT_SECRET_KEY"], algorithms=["HS256"])
    if not payload.get("user_id"):
        raise jwt.InvalidTokenError("Token has no user id")
    return Identity(payload["user_id"], payload.get("email"), payload.get("name"))


# JWT middleware
def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        if not token:
            logger.warning(f"Token missing in request to {request.path}")
            raise AuthenticationError("Access denied. No token provided.")
        try:
            user = decode_token(token)
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token expired.")
        except jwt.InvalidTokenError:
            logger.warning("Invalid token")
            raise AuthenticationError("Invalid token.")
        if User.find_by_id(user.id) is None:
            logger.warning(f"User {user.id} not found for token")
            raise AuthenticationError("Invalid token.")
        g.user = user
        return f(user, *args, **kwargs)
    return decorated


def token_optional(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        user = None
        token = _bearer_token()
        if token:
            try:
                user = decode_token(token)
            except jwt.InvalidTokenError:
                logger.warning("Invalid token provided for optional auth")
        g.user = user
        return f(user, *args, **kwargs)
    return decorated


def get_owned_or_404(model, resource_id, user, action="access"):
    resource = model.find_by_id(resource_id)
    if resource is None:
        raise NotFoundError(f"{model.LABEL.capitalize()} not found")
    if resource.user_id != user.id:
        logger.warning(f"Unauthorized attempt to {action} {model.LABEL} {resource_id} by user {user.id}")
        raise ForbiddenError(f"Not authorized to {action} this {model.LABEL}")
    return resource
