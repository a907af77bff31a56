# shop_admin/services/settings_service.py
from flask import current_app

from shop_admin.api.utils import payload as p
from shop_admin.extensions import db
from shop_admin.models import Setting
from shop_admin.models.common import utcnow
from shop_admin.realtime import realtime_events

PUBLIC_SETTING_KEYS = (
    "storeName",
    "supportEmail",
    "currency",
    "timezone",
    "taxRate",
    "websiteConfig",
)


def _to_record(rows) -> dict:
    return {row.key: row.value for row in rows}


def _stringify(value) -> str:
    # 20.0 is stored as "20"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_settings_payload(data: dict) -> dict:
    """Validated subset of the writable keys; anything else is ignored."""
    dto = {}
    for key in ("storeName", "currency", "timezone", "websiteConfig"):
        value = p.opt_str(data, key)
        if value is not None:
            dto[key] = value
    email = p.opt_email(data, "supportEmail")
    if email is not None:
        dto["supportEmail"] = email
    tax_rate = p.opt_number(data, "taxRate", minimum=0, maximum=100)
    if tax_rate is not None:
        dto["taxRate"] = tax_rate
    return dto


def get_all() -> dict:
    return _to_record(Setting.query.order_by(Setting.key.asc()).all())


def get_public() -> dict:
    rows = (
        Setting.query.filter(Setting.key.in_(PUBLIC_SETTING_KEYS))
        .order_by(Setting.key.asc())
        .all()
    )
    return _to_record(rows)


def upsert(key: str, value) -> Setting:
    row = Setting.query.filter_by(key=key).first()
    if row is None:
        row = Setting(key=key)
        db.session.add(row)
    row.value = _stringify(value)
    row.updated_at = utcnow()
    return row


def update(dto: dict) -> dict:
    for key, value in dto.items():
        upsert(key, value)
    db.session.commit()
    current_app.logger.info("Settings updated: %s", ", ".join(sorted(dto)) or "-")

    settings = get_all()
    realtime_events.emit(
        "settings.updated",
        {"settings": settings, "updatedAt": utcnow().isoformat() + "Z"},
    )
    return settings
