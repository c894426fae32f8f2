import logging
import sqlite3
from datetime import datetime, timezone

import click
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from .config import Config
from .errors import register_error_handlers
from .models import db

logger = logging.getLogger(__name__)

migrate = Migrate()


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE and REFERENCES unless enabled per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    logging.basicConfig(level=app.config["LOG_LEVEL"])

    CORS(app, resources={r"/api/*": {
        "origins": app.config["FRONTEND_URL"],
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "supports_credentials": True,
    }})
    db.init_app(app)
    migrate.init_app(app, db)

    from . import activities, authentication, goals, habits, health, tasks, users, views, work
    for module in (authentication, users, activities, tasks, health, work, goals, habits, views):
        app.register_blueprint(module.bp)

    register_error_handlers(app, db)

    @app.after_request
    def log_request(response):
        logger.info(f"{request.method} {request.path} {response.status_code}")
        return response

    @app.route("/api/status", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})

    @app.cli.command("init-db")
    def init_db_command():
        """Create any missing tables and indexes."""
        init_db()
        click.echo("Database initialized")

    # Create database tables
    with app.app_context():
        init_db()

    return app


def init_db():
    try:
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise
    db.create_all()
    logger.info("Database initialized successfully")
