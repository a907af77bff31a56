from shop_admin.extensions import db
from shop_admin.models.common import iso, money, new_uuid, utcnow

ORDER_STATUSES = ("NEW", "CONFIRMED", "PREPARING", "SHIPPED", "DELIVERED", "CANCELLED", "REFUNDED")
PAYMENT_STATUSES = ("PENDING", "PAID", "FAILED", "REFUNDED")
PAYMENT_METHODS = ("CARD", "CASH_ON_DELIVERY", "BANK_TRANSFER", "EFT_HAVALE", "PAYPAL", "OTHER")
FULFILLMENT_STATUSES = ("UNFULFILLED", "PROCESSING", "SHIPPED", "DELIVERED")

# statuses in which the order holds no stock
STOCK_BLOCKING_STATUSES = ("CANCELLED", "REFUNDED")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    order_number = db.Column(db.String(40), unique=True, nullable=False, index=True)

    customer_name = db.Column(db.String(200), nullable=False)
    customer_email = db.Column(db.String(200), nullable=False)
    customer_phone = db.Column(db.Text, nullable=True)

    # {fullName, phone?, country, city, district?, postalCode?, line1, line2?}
    shipping_address = db.Column(db.JSON, nullable=False)
    billing_address = db.Column(db.JSON, nullable=True)

    # [{productId?, productName, sku?, quantity, unitPrice, lineTotal, imageUrl?, variantTitle?}]
    items = db.Column(db.JSON, nullable=False, default=list)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    shipping_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    grand_total = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="TRY")

    status = db.Column(db.String(32), nullable=False, default="NEW", index=True)
    payment_status = db.Column(db.String(32), nullable=False, default="PENDING")
    payment_method = db.Column(db.String(32), nullable=False, default="CARD")
    payment_provider = db.Column(db.Text, nullable=True)
    payment_transaction_id = db.Column(db.Text, nullable=True)
    fulfillment_status = db.Column(db.String(32), nullable=False, default="UNFULFILLED")

    customer_note = db.Column(db.Text, nullable=True)
    admin_note = db.Column(db.Text, nullable=True)
    source = db.Column(db.String(32), nullable=False, default="WEBSITE")

    assigned_representative_id = db.Column(
        db.String(36), db.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_representative = db.relationship("AdminUser", lazy="joined")
    assignment_note = db.Column(db.Text, nullable=True)
    assigned_at = db.Column(db.DateTime, nullable=True)

    shipping_method = db.Column(db.Text, nullable=True)
    shipping_company = db.Column(db.Text, nullable=True)
    tracking_number = db.Column(db.Text, nullable=True)
    tracking_url = db.Column(db.Text, nullable=True)

    stock_deducted = db.Column(db.Boolean, nullable=False, default=True)

    placed_at = db.Column(db.DateTime, default=utcnow, index=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    activities = db.relationship(
        "OrderActivity",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def to_dict(self) -> dict:
        rep = self.assigned_representative
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "shippingAddress": self.shipping_address,
            "billingAddress": self.billing_address,
            "items": list(self.items or []),
            "subtotal": money(self.subtotal),
            "shippingFee": money(self.shipping_fee),
            "discountAmount": money(self.discount_amount),
            "taxAmount": money(self.tax_amount),
            "grandTotal": money(self.grand_total),
            "currency": self.currency,
            "status": self.status,
            "paymentStatus": self.payment_status,
            "paymentMethod": self.payment_method,
            "paymentProvider": self.payment_provider,
            "paymentTransactionId": self.payment_transaction_id,
            "fulfillmentStatus": self.fulfillment_status,
            "customerNote": self.customer_note,
            "adminNote": self.admin_note,
            "source": self.source,
            "assignedRepresentativeId": self.assigned_representative_id,
            "assignedRepresentative": rep.to_public_dict(with_timestamps=False) if rep else None,
            "assignmentNote": self.assignment_note,
            "assignedAt": iso(self.assigned_at),
            "shippingMethod": self.shipping_method,
            "shippingCompany": self.shipping_company,
            "trackingNumber": self.tracking_number,
            "trackingUrl": self.tracking_url,
            "stockDeducted": bool(self.stock_deducted),
            "placedAt": iso(self.placed_at),
            "paidAt": iso(self.paid_at),
            "confirmedAt": iso(self.confirmed_at),
            "shippedAt": iso(self.shipped_at),
            "deliveredAt": iso(self.delivered_at),
            "cancelledAt": iso(self.cancelled_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Order {self.order_number} status={self.status}>"
