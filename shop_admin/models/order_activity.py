from shop_admin.extensions import db
from shop_admin.models.common import iso, new_uuid, utcnow


class OrderActivity(db.Model):
    __tablename__ = "order_activities"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order = db.relationship("Order", back_populates="activities")

    actor_id = db.Column(
        db.String(36), db.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True
    )
    actor = db.relationship("AdminUser")
    actor_username = db.Column(db.Text, nullable=True)

    event_type = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text, nullable=False)
    meta = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "actorId": self.actor_id,
            "actorUsername": self.actor_username,
            "actor": self.actor.to_public_dict(with_timestamps=False) if self.actor else None,
            "eventType": self.event_type,
            "message": self.message,
            "meta": dict(self.meta or {}),
            "createdAt": iso(self.created_at),
        }

    def __repr__(self):
        return f"<OrderActivity {self.event_type} order={self.order_id}>"
