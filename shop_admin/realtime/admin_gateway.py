# shop_admin/realtime/admin_gateway.py
"""Socket.IO namespace the admin dashboard listens on for live updates."""
from flask import current_app, request
from flask_socketio import ConnectionRefusedError

from shop_admin.auth.tokens import bearer_token, verify_access_token
from shop_admin.extensions import socketio

NAMESPACE = "/admin-live"


def _handshake_token(auth) -> str | None:
    raw = auth.get("token") if isinstance(auth, dict) else None
    if not isinstance(raw, str):
        raw = request.args.get("token")
    return bearer_token(raw)


@socketio.on("connect", namespace=NAMESPACE)
def handle_connect(auth=None):
    token = _handshake_token(auth)
    if not token:
        current_app.logger.info("[admin-live] refused %s: missing token", request.sid)
        raise ConnectionRefusedError("Socket token required.")

    payload = verify_access_token(token)
    if not payload:
        current_app.logger.info("[admin-live] refused %s: invalid token", request.sid)
        raise ConnectionRefusedError("Invalid socket token.")

    current_app.logger.info("[admin-live] %s connected as %s", request.sid, payload.get("username"))


@socketio.on("disconnect", namespace=NAMESPACE)
def handle_disconnect(*args):
    current_app.logger.info("[admin-live] %s disconnected", request.sid)


def relay_to_dashboard(event: str, data: dict) -> None:
    """Rebroadcast a domain event to every connected dashboard under its own name."""
    socketio.emit(event, data, namespace=NAMESPACE)
