# shop_admin/services/users_service.py
from flask import current_app
from werkzeug.exceptions import Conflict, NotFound, Unauthorized

from shop_admin.api.utils import payload as p
from shop_admin.auth.tokens import issue_access_token
from shop_admin.extensions import db
from shop_admin.models.user import AdminUser, ROLE_REPRESENTATIVE


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


# ── Auth ─────────────────────────────────────────────────────────────────────

def login(username: str, password: str) -> dict:
    """Return {accessToken, user}; wrong credentials and inactive accounts are 401."""
    user = AdminUser.query.filter_by(username=normalize_username(username)).first()
    if not user or not user.check_password(password or ""):
        current_app.logger.info("Failed login for %r", username)
        raise Unauthorized("Invalid username or password.")

    # only reported once the password matched
    if not user.is_active:
        raise Unauthorized("Account is inactive.")

    return {
        "accessToken": issue_access_token(user),
        "user": user.to_public_dict(with_timestamps=False),
    }


def get_profile(user_id: str) -> AdminUser:
    return db.get_or_404(AdminUser, user_id, description="User not found.")


# ── Representatives ──────────────────────────────────────────────────────────

def parse_representative_payload(data: dict, partial: bool = False) -> dict:
    dto = {}
    if not partial:
        dto["username"] = p.req_str(data, "username", min_length=3)
        dto["password"] = p.req_str(data, "password", min_length=6)
        dto["fullName"] = p.req_str(data, "fullName", min_length=2)
    else:
        if data.get("fullName") is not None:
            dto["fullName"] = p.opt_str(data, "fullName", min_length=2)
        if data.get("password") is not None:
            dto["password"] = p.opt_str(data, "password", min_length=6)
    if data.get("isActive") is not None:
        dto["isActive"] = p.opt_bool(data, "isActive")
    return dto


def list_representatives() -> list[AdminUser]:
    return (
        AdminUser.query.filter_by(role=ROLE_REPRESENTATIVE)
        .order_by(AdminUser.is_active.desc(), AdminUser.created_at.desc())
        .all()
    )


def create_representative(dto: dict) -> AdminUser:
    username = normalize_username(dto["username"])
    if AdminUser.query.filter_by(username=username).first():
        raise Conflict("This username is already taken.")

    rep = AdminUser(
        username=username,
        full_name=dto["fullName"].strip(),
        role=ROLE_REPRESENTATIVE,
        is_active=dto.get("isActive", True),
    )
    rep.set_password(dto["password"])
    db.session.add(rep)
    db.session.commit()
    current_app.logger.info("Representative %s created", rep.username)
    return rep


def update_representative(user_id: str, dto: dict) -> AdminUser:
    rep = AdminUser.query.filter_by(id=user_id, role=ROLE_REPRESENTATIVE).first()
    if rep is None:
        raise NotFound("Representative not found.")

    if "fullName" in dto:
        rep.full_name = dto["fullName"].strip()
    if dto.get("password"):
        rep.set_password(dto["password"])
    if "isActive" in dto:
        rep.is_active = dto["isActive"]

    db.session.commit()
    return rep
