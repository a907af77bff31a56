from shop_admin.extensions import db
from shop_admin.models.common import new_uuid, utcnow


class Setting(db.Model):
    __tablename__ = "settings"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    key = db.Column(db.String(100), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Setting {self.key}>"
