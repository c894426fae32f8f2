"""Request parsing and the JSON envelope shared by every API blueprint."""
from datetime import date
from flask import jsonify, request

from .errors import ValidationError

DEFAULT_LIMIT = 50


def envelope(data=None, message=None, status=200, count=None):
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    return jsonify(body), status


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def require_fields(data, *fields):
    missing = [field for field in fields if data.get(field) in (None, "")]
    if missing:
        raise ValidationError(f"{_join(fields)} {'is' if len(fields) == 1 else 'are'} required")


def _join(fields):
    names = [field.replace("_", " ") for field in fields]
    names[0] = names[0].capitalize()
    if len(names) <= 2:
        return " and ".join(names)
    return ", ".join(names[:-1]) + ", and " + names[-1]


def int_arg(name, default):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if value < 0:
        raise ValidationError(f"{name} must not be negative")
    return value


def pagination():
    return int_arg("limit", DEFAULT_LIMIT), int_arg("offset", 0)


def date_arg(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format")


def bool_arg(name):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    if raw.lower() in ("1", "true", "yes"):
        return True
    if raw.lower() in ("0", "false", "no"):
        return False
    raise ValidationError(f"{name} must be true or false")
