import logging
from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


def error_response(message, status_code):
    return jsonify({"success": False, "error": message}), status_code


def register_error_handlers(app, db):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        # drop anything assign() staged before the error surfaced
        db.session.rollback()
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return error_response(e.message, e.status_code)

    @app.errorhandler(404)
    def handle_not_found(e):
        return error_response(f"Not found - {request.path}", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return error_response(f"Method {request.method} not allowed on {request.path}", 405)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        logger.exception(f"Database error on {request.method} {request.path}: {str(e)}")
        return error_response("Database error", 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return error_response(e.description, e.code)
        db.session.rollback()
        logger.exception(f"Unhandled error on {request.method} {request.path}: {str(e)}")
        return error_response("Internal server error", 500)
