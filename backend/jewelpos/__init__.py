# backend/jewelpos/__init__.py
import logging

from flask import Flask, jsonify

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    logging.getLogger("jewelpos").setLevel(app.logger.level)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.stocks import stocks_bp
    from .routes.transactions import transactions_bp
    from .routes.price_updates import price_updates_bp
    from .routes.members import members_bp
    from .routes.raw_materials import raw_materials_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(stocks_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(price_updates_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(raw_materials_bp)

    @app.errorhandler(404)
    def not_found(_e):
        return jsonify({"error": "Not found", "kind": "not_found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return jsonify({"error": "Method not allowed", "kind": "validation"}), 405

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
