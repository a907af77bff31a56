# shop_admin/app.py
from flask import Flask, jsonify, current_app
from werkzeug.exceptions import HTTPException, InternalServerError

from shop_admin.config import Config

# Extensions
from shop_admin.extensions import db, login_manager, bcrypt, migrate, cors, socketio, init_mail
from shop_admin.realtime import realtime_events
from shop_admin.realtime.admin_gateway import relay_to_dashboard

# Blueprints
from shop_admin.auth import auth_bp
from shop_admin.api.routes.users_routes import users_bp
from shop_admin.api.routes.settings_routes import settings_bp
from shop_admin.api.routes.catalog_routes import catalog_bp
from shop_admin.api.routes.order_routes import admin_orders_bp, shop_orders_bp
from shop_admin import models as _models  # noqa: F401
from shop_admin.cli import register_cli
from shop_admin.models.common import utcnow


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description, "statusCode": e.code}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        current_app.logger.exception("Unhandled error")
        err = InternalServerError()
        return jsonify({"error": err.description, "statusCode": err.code}), err.code


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    bcrypt.init_app(app)
    init_mail(app)

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"], "supports_credentials": True}},
    )
    socketio.init_app(
        app,
        cors_allowed_origins=app.config["CORS_ORIGINS"],
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE"),
    )

    realtime_events.init_app(app)
    realtime_events.on_event(relay_to_dashboard)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(admin_orders_bp)
    app.register_blueprint(shop_orders_bp)

    @app.get("/api/health")
    def health():
        return jsonify({
            "status": "ok",
            "service": app.config.get("SERVICE_NAME"),
            "timestamp": utcnow().isoformat() + "Z",
        }), 200

    _register_error_handlers(app)
    register_cli(app)

    with app.app_context():
        if app.config.get("DB_SYNC"):
            db.create_all()
        if app.config.get("SEED_ON_STARTUP"):
            from shop_admin.services.seed_service import run_all

            run_all()

    if not app.config.get("TESTING"):
        realtime_events.start()

    return app
