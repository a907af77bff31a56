# shop_admin/extensions.py
from __future__ import annotations

from flask import jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_cors import CORS
from flask_mail import Mail
from flask_socketio import SocketIO

# Keep extension instances in one place to avoid circular imports
db = SQLAlchemy()
login_manager = LoginManager()
bcrypt = Bcrypt()
migrate = Migrate()
cors = CORS()
mail = Mail()
socketio = SocketIO()


@login_manager.request_loader
def load_user_from_request(req):
    # Lazy import to avoid circular dependency when loading the model
    from shop_admin.auth.tokens import bearer_token, verify_access_token
    from shop_admin.models.user import AdminUser

    token = bearer_token(req.headers.get("Authorization"))
    if not token:
        return None
    payload = verify_access_token(token)
    if not payload:
        return None
    user = db.session.get(AdminUser, payload.get("sub"))
    if user is None or not user.is_active:
        return None
    return user


@login_manager.user_loader
def load_user(user_id):
    from shop_admin.models.user import AdminUser

    return db.session.get(AdminUser, str(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Authentication required", "statusCode": 401}), 401


def _coerce_bool(v, default=False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    return s in ("1", "true", "t", "yes", "y", "on")


def _clean_hostname(server: str | None) -> str:
    """Return hostname without scheme/path/spaces."""
    s = (server or "").strip()
    if "://" in s:
        s = s.split("://", 1)[1]
    if "/" in s:
        s = s.split("/", 1)[0]
    return s


def init_mail(app):
    """
    Initialize Flask-Mail after normalizing the MAIL_* settings so a
    malformed server or an SSL/TLS mix-up does not surface on first send.
    """
    cfg = app.config

    server = _clean_hostname(cfg.get("MAIL_SERVER")) or "localhost"
    cfg["MAIL_SERVER"] = server

    use_ssl = _coerce_bool(cfg.get("MAIL_USE_SSL"), False)
    use_tls = _coerce_bool(cfg.get("MAIL_USE_TLS"), False)
    if use_ssl and use_tls:
        use_tls = False
        cfg["MAIL_USE_TLS"] = False
        app.logger.info("MAIL_USE_SSL and MAIL_USE_TLS were both set -> disabling TLS (prefer SSL).")

    try:
        int(cfg.get("MAIL_PORT"))
    except (TypeError, ValueError):
        port = 465 if use_ssl else (587 if use_tls else 25)
        cfg["MAIL_PORT"] = port
        app.logger.info("MAIL_PORT was invalid -> setting %s (SSL=%s, TLS=%s).", port, use_ssl, use_tls)

    if not cfg.get("MAIL_DEFAULT_SENDER"):
        cfg["MAIL_DEFAULT_SENDER"] = cfg.get("MAIL_USERNAME") or "no-reply@localhost"

    app.logger.info(
        "MAIL cfg -> server=%s port=%s ssl=%s tls=%s sender=%s suppress=%s",
        cfg.get("MAIL_SERVER"),
        cfg.get("MAIL_PORT"),
        bool(cfg.get("MAIL_USE_SSL")),
        bool(cfg.get("MAIL_USE_TLS")),
        cfg.get("MAIL_DEFAULT_SENDER"),
        bool(cfg.get("MAIL_SUPPRESS_SEND")),
    )

    mail.init_app(app)
