import logging
from flask import Blueprint

from .auth import generate_token, token_required
from .errors import AuthenticationError, NotFoundError, ValidationError
from .models import User, db
from .responses import envelope, json_body

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

MIN_PASSWORD_LENGTH = 6


def _current_user(identity):
    user = User.find_by_id(identity.id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _all_strings(*values):
    return all(isinstance(value, str) for value in values)


# Register endpoint
@bp.route("/register", methods=["POST"])
def register():
    data = json_body()
    email = data.get("email")
    name = data.get("name")
    password = data.get("password")
    if not email or not name or not password:
        raise ValidationError("Please provide email, name, and password")
    if not _all_strings(email, name, password):
        raise ValidationError("Email, name, and password must be strings")
    if not email.strip() or not name.strip():
        raise ValidationError("Please provide email, name, and password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if User.find_by_email(email):
        raise ValidationError("User already exists with this email")
    user = User.create(email=email, name=name, password=password)
    logger.info(f"User registered: {user.email}")
    return envelope({"user": user.to_dict(), "token": generate_token(user)},
                    message="User registered successfully", status=201)


# Login endpoint
@bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        raise ValidationError("Please provide email and password")
    if not _all_strings(email, password):
        raise ValidationError("Email and password must be strings")
    user = User.find_by_email(email)
    if not user or not user.check_password(password):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationError("Invalid credentials")
    logger.info(f"User logged in: {user.email}")
    return envelope({"user": user.to_dict(), "token": generate_token(user)}, message="Login successful")


@bp.route("/me", methods=["GET"])
@token_required
def me(identity):
    return envelope(_current_user(identity).to_dict())


@bp.route("/profile", methods=["PUT"])
@token_required
def update_profile(identity):
    data = json_body()
    user = _current_user(identity)
    if "email" in data:
        email = data["email"]
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Please provide a valid email")
        if User.normalize_email(email) != user.email and User.find_by_email(email):
            raise ValidationError("Email already in use")
    if "name" in data and (not isinstance(data["name"], str) or not data["name"].strip()):
        raise ValidationError("Name cannot be empty")
    if data.get("avatar_url") is not None and not isinstance(data["avatar_url"], str):
        raise ValidationError("Avatar URL must be a string")
    user.update({key: data[key] for key in ("name", "email", "avatar_url", "preferences") if key in data})
    logger.info(f"Profile updated for user {user.id}")
    return envelope(user.to_dict(), message="Profile updated successfully")


@bp.route("/change-password", methods=["PUT"])
@token_required
def change_password(identity):
    data = json_body()
    current_password = data.get("currentPassword")
    new_password = data.get("newPassword")
    if not current_password or not new_password:
        raise ValidationError("Please provide current and new password")
    if not _all_strings(current_password, new_password):
        raise ValidationError("Passwords must be strings")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
    user = _current_user(identity)
    if not user.check_password(current_password):
        raise ValidationError("Current password is incorrect")
    user.set_password(new_password)
    db.session.commit()
    logger.info(f"Password changed for user {user.id}")
    return envelope(message="Password updated successfully")


@bp.route("/account", methods=["DELETE"])
@token_required
def delete_account(identity):
    data = json_body()
    password = data.get("password")
    if not password or not isinstance(password, str):
        raise ValidationError("Please provide your password to delete account")
    user = _current_user(identity)
    if not user.check_password(password):
        raise ValidationError("Password is incorrect")
    user.delete()
    logger.info(f"Account {identity.id} deleted")
    return envelope(message="Account deleted successfully")
