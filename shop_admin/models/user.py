# shop_admin/models/user.py
from flask_login import UserMixin

from shop_admin.extensions import db, bcrypt
from shop_admin.models.common import iso, new_uuid, utcnow

ROLE_ADMIN = "ADMIN"
ROLE_REPRESENTATIVE = "REPRESENTATIVE"
ROLES = (ROLE_ADMIN, ROLE_REPRESENTATIVE)


class AdminUser(db.Model, UserMixin):
    __tablename__ = "admin_users"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    username = db.Column(db.String(150), unique=True, nullable=False)
    full_name = db.Column(db.Text, nullable=False, default="")
    password_hash = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_ADMIN)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # --- Password handling ---------------------------------------------------
    def set_password(self, password: str) -> None:
        self.password_hash = bcrypt.generate_password_hash(password).decode("utf-8")

    def check_password(self, password: str) -> bool:
        try:
            return bcrypt.check_password_hash(self.password_hash, password)
        except ValueError:
            # malformed hash in the DB
            return False

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def get_id(self):
        return str(self.id)

    def to_public_dict(self, with_timestamps: bool = True) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "role": self.role,
            "isActive": bool(self.is_active),
        }
        if with_timestamps:
            data["createdAt"] = iso(self.created_at)
            data["updatedAt"] = iso(self.updated_at)
        return data

    def __repr__(self):
        return f"<AdminUser {self.username} role={self.role}>"
