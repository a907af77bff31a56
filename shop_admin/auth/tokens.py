# shop_admin/auth/tokens.py
from flask import current_app
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

TOKEN_SALT = "admin-access-token"


# ── Helpers ──────────────────────────────────────────────────────────────────

def _get_serializer() -> URLSafeTimedSerializer:
    secret = current_app.config.get("JWT_SECRET") or current_app.config.get("SECRET_KEY")
    if not secret:
        raise RuntimeError("JWT_SECRET is not set, access tokens cannot be signed.")
    return URLSafeTimedSerializer(secret_key=secret, salt=TOKEN_SALT)


def issue_access_token(user) -> str:
    s = _get_serializer()
    return s.dumps({"sub": str(user.id), "username": user.username, "role": user.role})


def verify_access_token(token: str) -> dict | None:
    """Payload of a valid token, None when it is forged, expired or malformed."""
    if not token:
        return None
    max_age = int(current_app.config.get("JWT_EXPIRES_IN", 86400))
    try:
        data = _get_serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        current_app.logger.info("Access token expired")
        return None
    except BadSignature:
        return None
    if not isinstance(data, dict) or not data.get("sub"):
        return None
    return data


def bearer_token(value: str | None) -> str | None:
    """Strip an optional `Bearer ` prefix from a header or socket auth value."""
    if not value:
        return None
    value = str(value).strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value or None
