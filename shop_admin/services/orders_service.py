# shop_admin/services/orders_service.py
"""
Order lifecycle.

Website orders deduct stock when they are placed. Afterwards the stock an
order holds follows its status: moving into CANCELLED/REFUNDED gives the
stock back, moving out of them takes it again. ``stock_deducted`` records
which side the order is on, so each transition is applied at most once.
"""
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, or_
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, HTTPException, NotFound

from shop_admin.api.utils import payload as p
from shop_admin.extensions import db
from shop_admin.models import Order, OrderActivity, Product
from shop_admin.models.common import money, utcnow
from shop_admin.models.order import (
    FULFILLMENT_STATUSES,
    ORDER_STATUSES,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    STOCK_BLOCKING_STATUSES,
)
from shop_admin.models.user import AdminUser, ROLE_ADMIN, ROLE_REPRESENTATIVE
from shop_admin.realtime import realtime_events
from shop_admin.services import notifications

DEDUCT = "DEDUCT"
RESTORE = "RESTORE"

# per order line
MAX_QUANTITY = 100000


# ── Payload parsing ──────────────────────────────────────────────────────────

def _parse_address(raw: dict, field: str) -> dict:
    try:
        address = {
            "fullName": p.req_str(raw, "fullName", min_length=2),
            "phone": p.opt_str(raw, "phone"),
            "country": p.req_str(raw, "country", min_length=2),
            "city": p.req_str(raw, "city", min_length=2),
            "district": p.opt_str(raw, "district"),
            "postalCode": p.opt_str(raw, "postalCode"),
            "line1": p.req_str(raw, "line1", min_length=2),
            "line2": p.opt_str(raw, "line2"),
        }
    except BadRequest as e:
        raise BadRequest(f"{field}: {e.description}")
    return {k: v for k, v in address.items() if v is not None}


def _parse_item(raw: dict, idx: int) -> dict:
    try:
        item = {
            "productId": p.opt_str(raw, "productId"),
            "productName": p.req_str(raw, "productName", min_length=2),
            "sku": p.opt_str(raw, "sku"),
            "quantity": p.req_int(raw, "quantity", minimum=1, maximum=MAX_QUANTITY),
            "unitPrice": p.req_number(raw, "unitPrice", minimum=0, places=2),
            "imageUrl": p.opt_str(raw, "imageUrl"),
            "variantTitle": p.opt_str(raw, "variantTitle"),
        }
    except BadRequest as e:
        raise BadRequest(f"items[{idx}]: {e.description}")
    return {k: v for k, v in item.items() if v is not None}


def parse_shop_order_payload(data: dict) -> dict:
    shipping = p.opt_object(data, "shippingAddress")
    if shipping is None:
        raise BadRequest("'shippingAddress' is required.")
    billing = p.opt_object(data, "billingAddress")

    raw_items = p.opt_object_list(data, "items")
    if not raw_items:
        raise BadRequest("'items' must contain at least one item.")

    return {
        "customerName": p.req_str(data, "customerName", min_length=2),
        "customerEmail": p.req_email(data, "customerEmail"),
        "customerPhone": p.opt_str(data, "customerPhone"),
        "shippingAddress": _parse_address(shipping, "shippingAddress"),
        "billingAddress": _parse_address(billing, "billingAddress") if billing is not None else None,
        "items": [_parse_item(it, i) for i, it in enumerate(raw_items)],
        "shippingFee": p.opt_number(data, "shippingFee", minimum=0, places=2),
        "discountAmount": p.opt_number(data, "discountAmount", minimum=0, places=2),
        "taxAmount": p.opt_number(data, "taxAmount", minimum=0, places=2),
        "currency": p.opt_str(data, "currency"),
        "paymentStatus": p.opt_choice(data, "paymentStatus", PAYMENT_STATUSES),
        "paymentMethod": p.opt_choice(data, "paymentMethod", PAYMENT_METHODS),
        "paymentProvider": p.opt_str(data, "paymentProvider"),
        "paymentTransactionId": p.opt_str(data, "paymentTransactionId"),
        "shippingMethod": p.opt_str(data, "shippingMethod"),
        "customerNote": p.opt_str(data, "customerNote"),
    }


_NULLABLE_TEXT_FIELDS = (
    "assignmentNote",
    "paymentProvider",
    "paymentTransactionId",
    "shippingMethod",
    "adminNote",
    "shippingCompany",
    "trackingNumber",
    "trackingUrl",
)


def parse_update_order_payload(data: dict) -> dict:
    dto = {}
    if data.get("clearAssignment") is not None:
        dto["clearAssignment"] = p.opt_bool(data, "clearAssignment")

    rep_id = data.get("assignedRepresentativeId")
    if rep_id is not None:
        if not isinstance(rep_id, str) or not p.UUID_RE.match(rep_id):
            raise BadRequest("'assignedRepresentativeId' must be a UUID.")
        dto["assignedRepresentativeId"] = rep_id

    for key, choices in (
        ("status", ORDER_STATUSES),
        ("paymentStatus", PAYMENT_STATUSES),
        ("paymentMethod", PAYMENT_METHODS),
        ("fulfillmentStatus", FULFILLMENT_STATUSES),
    ):
        value = p.opt_choice(data, key, choices)
        if value is not None:
            dto[key] = value

    for key in _NULLABLE_TEXT_FIELDS:
        if key in data:
            dto[key] = p.opt_str(data, key)
    return dto


def parse_order_filters(args) -> dict:
    filters = {}
    for key, choices in (
        ("status", ORDER_STATUSES),
        ("paymentStatus", PAYMENT_STATUSES),
        ("paymentMethod", PAYMENT_METHODS),
        ("fulfillmentStatus", FULFILLMENT_STATUSES),
    ):
        value = args.get(key) or None
        if value is not None and value not in choices:
            raise BadRequest(f"'{key}' must be one of: {', '.join(choices)}.")
        filters[key] = value

    rep_id = args.get("assignedRepresentativeId") or None
    if rep_id is not None and not p.UUID_RE.match(rep_id):
        raise BadRequest("'assignedRepresentativeId' must be a UUID.")
    filters["assignedRepresentativeId"] = rep_id

    mine = args.get("mine") or None
    if mine is not None and mine not in ("true", "false"):
        raise BadRequest("'mine' must be 'true' or 'false'.")
    filters["mine"] = mine == "true"

    filters["search"] = (args.get("search") or "").strip() or None
    return filters


# ── Stock reconciliation ─────────────────────────────────────────────────────

def resolve_stock_action(previous_status: str, next_status: str, stock_deducted: bool) -> str | None:
    was_blocked = previous_status in STOCK_BLOCKING_STATUSES
    is_blocked = next_status in STOCK_BLOCKING_STATUSES

    if not was_blocked and is_blocked and stock_deducted:
        return RESTORE
    if was_blocked and not is_blocked and not stock_deducted:
        return DEDUCT
    return None


def _locked(product_id: str) -> Product | None:
    return Product.query.filter_by(id=product_id).with_for_update().first()


def resolve_product_for_item(item: dict) -> Product | None:
    """By productId (404 when unknown), else product SKU, else variant SKU."""
    product_id = item.get("productId")
    if product_id:
        product = _locked(product_id)
        if product is None:
            raise NotFound(f"Product not found: {product_id}")
        return product

    sku = item.get("sku")
    if not sku:
        return None

    by_sku = Product.query.filter_by(sku=sku).with_for_update().first()
    if by_sku is not None:
        return by_sku

    # variants live in a JSON list, matched here rather than in SQL
    for candidate in Product.query.filter_by(has_variants=True).order_by(Product.created_at.asc()):
        if candidate.find_variant(sku) >= 0:
            return _locked(candidate.id)
    return None


def apply_stock_for_items(items: list[dict], action: str) -> list[dict]:
    """
    Move stock for every resolvable item and return the items with the
    resolved product id written back. Raises Conflict when a deduction would
    take a product or variant below zero; the caller rolls back.
    """
    updated = []
    for raw in items:
        item = dict(raw)
        updated.append(item)

        product = resolve_product_for_item(item)
        if product is None:
            continue

        item["productId"] = item.get("productId") or product.id
        quantity = int(item.get("quantity") or 0)
        delta = -quantity if action == DEDUCT else quantity

        if product.has_variants and product.variants and item.get("sku"):
            idx = product.find_variant(item["sku"])
            if idx >= 0:
                variants = [dict(v) for v in product.variants]
                next_stock = int(variants[idx].get("stock") or 0) + delta
                if next_stock < 0:
                    raise Conflict(f"Insufficient stock for {product.name} ({variants[idx]['sku']}).")
                variants[idx]["stock"] = next_stock
                product.variants = variants
                product.stock = sum(int(v.get("stock") or 0) for v in variants)
                continue

        next_stock = int(product.stock or 0) + delta
        if next_stock < 0:
            raise Conflict(f"Insufficient stock for {product.name}.")
        product.stock = next_stock

    db.session.flush()
    return updated


def _stock_meta(items: list[dict]) -> list[dict]:
    return [
        {"productId": it.get("productId"), "sku": it.get("sku"), "quantity": it.get("quantity")}
        for it in items
    ]


# ── Helpers ──────────────────────────────────────────────────────────────────

def _add_activity(order: Order, actor, event_type: str, message: str, meta: dict | None = None) -> None:
    db.session.add(OrderActivity(
        order_id=order.id,
        actor_id=actor.id if actor else None,
        actor_username=actor.username if actor else None,
        event_type=event_type,
        message=message,
        meta=meta or {},
    ))


def generate_order_number(now: datetime | None = None) -> str:
    """<PREFIX>-YYYYMMDD-NNNN, the first free serial after today's order count."""
    now = now or datetime.now()
    prefix = current_app.config.get("ORDER_NUMBER_PREFIX") or "ZYT"
    base = f"{prefix}-{now:%Y%m%d}"

    serial = Order.query.filter(Order.order_number.like(f"{base}-%")).count() + 1
    while True:
        candidate = f"{base}-{serial:04d}"
        if not Order.query.filter_by(order_number=candidate).first():
            return candidate
        serial += 1


def _resolve_representative(user_id: str) -> AdminUser:
    rep = AdminUser.query.filter_by(id=user_id, role=ROLE_REPRESENTATIVE, is_active=True).first()
    if rep is None:
        raise NotFound("Representative not found or inactive.")
    return rep


def _to_decimal(value) -> Decimal:
    return Decimal(str(p.round2(value)))


# ── Actor scope ──────────────────────────────────────────────────────────────

def apply_actor_scope(query, actor, filters: dict | None = None):
    if actor.role != ROLE_REPRESENTATIVE:
        return query

    filters = filters or {}
    wanted = filters.get("assignedRepresentativeId")
    if wanted and wanted != actor.id:
        raise Forbidden("Representatives can only see their own assigned orders.")

    if filters.get("mine"):
        return query.filter(Order.assigned_representative_id == actor.id)

    return query.filter(
        or_(
            Order.assigned_representative_id == actor.id,
            Order.assigned_representative_id.is_(None),
        )
    )


def assert_actor_can_access(order: Order, actor) -> None:
    if actor.role != ROLE_REPRESENTATIVE:
        return
    if order.assigned_representative_id and order.assigned_representative_id != actor.id:
        raise Forbidden("You do not have access to this order.")


# ── Queries ──────────────────────────────────────────────────────────────────

def list_orders(filters: dict, actor) -> list[Order]:
    q = Order.query
    if filters.get("status"):
        q = q.filter(Order.status == filters["status"])
    if filters.get("paymentStatus"):
        q = q.filter(Order.payment_status == filters["paymentStatus"])
    if filters.get("paymentMethod"):
        q = q.filter(Order.payment_method == filters["paymentMethod"])
    if filters.get("fulfillmentStatus"):
        q = q.filter(Order.fulfillment_status == filters["fulfillmentStatus"])
    if filters.get("assignedRepresentativeId"):
        q = q.filter(Order.assigned_representative_id == filters["assignedRepresentativeId"])
    if filters.get("search"):
        like = f"%{filters['search']}%"
        q = q.filter(
            or_(
                Order.order_number.ilike(like),
                Order.customer_name.ilike(like),
                Order.customer_email.ilike(like),
                Order.customer_phone.ilike(like),
            )
        )

    q = apply_actor_scope(q, actor, filters)
    return q.order_by(Order.placed_at.desc()).all()


def get_summary(actor) -> dict:
    totals_q = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.grand_total), 0),
    ).filter(Order.status.notin_(STOCK_BLOCKING_STATUSES))
    totals_q = apply_actor_scope(totals_q, actor)
    order_count, total_revenue = totals_q.one()

    status_q = db.session.query(Order.status, func.count(Order.id)).group_by(Order.status)
    status_q = apply_actor_scope(status_q, actor)

    return {
        "orderCount": int(order_count or 0),
        "totalRevenue": p.round2(total_revenue or 0),
        "byStatus": {status: int(count) for status, count in status_q.all()},
    }


def get_order(order_id: str, actor) -> Order:
    order = db.get_or_404(Order, order_id, description="Order not found.")
    assert_actor_can_access(order, actor)
    return order


def list_activities(order_id: str, actor) -> list[OrderActivity]:
    get_order(order_id, actor)
    return (
        OrderActivity.query.filter_by(order_id=order_id)
        .order_by(OrderActivity.created_at.desc())
        .all()
    )


def get_by_number(order_number: str) -> Order:
    order = Order.query.filter_by(order_number=order_number).first()
    if order is None:
        raise NotFound("Order not found.")
    return order


# ── Commands ─────────────────────────────────────────────────────────────────

def create_from_website(dto: dict) -> Order:
    items = []
    for it in dto["items"]:
        item = dict(it)
        item["unitPrice"] = p.round2(it["unitPrice"])
        item["lineTotal"] = p.round2(it["quantity"] * it["unitPrice"])
        items.append(item)

    subtotal = p.round2(sum(it["lineTotal"] for it in items))
    shipping_fee = p.round2(dto.get("shippingFee") or 0)
    discount_amount = p.round2(dto.get("discountAmount") or 0)
    tax_amount = p.round2(dto.get("taxAmount") or 0)
    grand_total = p.round2(subtotal + shipping_fee + tax_amount - discount_amount)
    if max(subtotal, grand_total) > p.MONEY_MAX:
        raise BadRequest(f"Order total must be <= {p.MONEY_MAX}.")
    payment_status = dto.get("paymentStatus") or "PENDING"
    currency = (dto.get("currency") or current_app.config.get("DEFAULT_CURRENCY") or "TRY").upper()

    try:
        order_number = generate_order_number()
        items = apply_stock_for_items(items, DEDUCT)

        now = utcnow()
        order = Order(
            order_number=order_number,
            customer_name=dto["customerName"],
            customer_email=dto["customerEmail"],
            customer_phone=p.to_nullable(dto.get("customerPhone")),
            shipping_address=dto["shippingAddress"],
            billing_address=dto.get("billingAddress"),
            items=items,
            subtotal=_to_decimal(subtotal),
            shipping_fee=_to_decimal(shipping_fee),
            discount_amount=_to_decimal(discount_amount),
            tax_amount=_to_decimal(tax_amount),
            grand_total=_to_decimal(grand_total),
            currency=currency,
            status="NEW",
            payment_status=payment_status,
            payment_method=dto.get("paymentMethod") or "CARD",
            payment_provider=p.to_nullable(dto.get("paymentProvider")),
            payment_transaction_id=p.to_nullable(dto.get("paymentTransactionId")),
            fulfillment_status="UNFULFILLED",
            customer_note=p.to_nullable(dto.get("customerNote")),
            source="WEBSITE",
            shipping_method=p.to_nullable(dto.get("shippingMethod")),
            stock_deducted=True,
            placed_at=now,
            paid_at=now if payment_status == "PAID" else None,
        )
        db.session.add(order)
        db.session.flush()

        _add_activity(order, None, "ORDER_CREATED", "Website order created.", {"source": "WEBSITE"})
        _add_activity(
            order, None, "STOCK_DEDUCTED",
            "Stock deducted for the ordered items.",
            {"items": _stock_meta(items)},
        )
        db.session.commit()
    except HTTPException:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception("create_from_website failed")
        raise

    current_app.logger.info("Order %s created (%s %s)", order.order_number, order.grand_total, order.currency)

    realtime_events.emit("orders.created", {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "grandTotal": money(order.grand_total),
        "status": order.status,
    })
    notifications.send_order_emails(order)
    return order


def update_order(order_id: str, dto: dict, actor) -> Order:
    order = get_order(order_id, actor)
    try:
        _apply_update(order, dto, actor)
        db.session.commit()
    except HTTPException:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception("update_order failed for %s", order_id)
        raise

    realtime_events.emit("orders.updated", {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "status": order.status,
        "paymentStatus": order.payment_status,
        "fulfillmentStatus": order.fulfillment_status,
        "assignedRepresentativeId": order.assigned_representative_id,
    })
    return get_order(order.id, actor)


def _apply_update(order: Order, dto: dict, actor) -> None:
    activities = []
    now = utcnow()

    # ── assignment
    if dto.get("clearAssignment"):
        if actor.role != ROLE_ADMIN:
            raise Forbidden("Only an admin can clear an assignment.")
        if order.assigned_representative_id:
            previous = order.assigned_representative.full_name if order.assigned_representative else "Representative"
            order.assigned_representative_id = None
            order.assigned_representative = None
            order.assigned_at = None
            activities.append(("ASSIGNMENT_CLEARED", f"Assignment cleared (previous: {previous}).", None))

    if "assignedRepresentativeId" in dto:
        if actor.role == ROLE_REPRESENTATIVE and dto["assignedRepresentativeId"] != actor.id:
            raise Forbidden("Representatives can only assign orders to themselves.")
        rep = _resolve_representative(dto["assignedRepresentativeId"])
        changed = order.assigned_representative_id != rep.id
        order.assigned_representative_id = rep.id
        order.assigned_representative = rep
        if changed:
            order.assigned_at = now
            activities.append((
                "ASSIGNMENT_CHANGED",
                f"Order assigned to {rep.full_name}.",
                {"representativeId": rep.id, "representativeUsername": rep.username},
            ))
    elif actor.role == ROLE_REPRESENTATIVE and not order.assigned_representative_id:
        rep = _resolve_representative(actor.id)
        order.assigned_representative_id = rep.id
        order.assigned_representative = rep
        order.assigned_at = now
        activities.append((
            "ASSIGNMENT_CLAIMED",
            "Order claimed by representative.",
            {"representativeId": rep.id, "representativeUsername": rep.username},
        ))

    if "assignmentNote" in dto:
        order.assignment_note = p.to_nullable(dto["assignmentNote"])
        activities.append(("ASSIGNMENT_NOTE_UPDATED", "Assignment note updated.", None))

    if actor.role == ROLE_REPRESENTATIVE and order.assigned_representative_id != actor.id:
        raise Forbidden("This order is assigned to another representative.")

    # ── status
    previous_status = order.status
    new_status = dto.get("status")
    if new_status and new_status != order.status:
        order.status = new_status
        if new_status == "CONFIRMED" and not order.confirmed_at:
            order.confirmed_at = now
        if new_status == "SHIPPED" and not order.shipped_at:
            order.shipped_at = now
        if new_status == "DELIVERED" and not order.delivered_at:
            order.delivered_at = now
        if new_status == "CANCELLED" and not order.cancelled_at:
            order.cancelled_at = now
        activities.append((
            "ORDER_STATUS_UPDATED",
            f"Order status changed {previous_status} -> {new_status}.",
            None,
        ))

    # ── payment
    new_payment = dto.get("paymentStatus")
    if new_payment and new_payment != order.payment_status:
        previous_payment = order.payment_status
        order.payment_status = new_payment
        if new_payment == "PAID":
            order.paid_at = order.paid_at or now
        else:
            order.paid_at = None
        activities.append((
            "PAYMENT_STATUS_UPDATED",
            f"Payment status changed {previous_payment} -> {new_payment}.",
            None,
        ))

    new_method = dto.get("paymentMethod")
    if new_method and new_method != order.payment_method:
        previous_method = order.payment_method
        order.payment_method = new_method
        activities.append((
            "PAYMENT_METHOD_UPDATED",
            f"Payment method changed {previous_method} -> {new_method}.",
            None,
        ))

    if "paymentProvider" in dto:
        order.payment_provider = p.to_nullable(dto["paymentProvider"])
    if "paymentTransactionId" in dto:
        order.payment_transaction_id = p.to_nullable(dto["paymentTransactionId"])

    # ── fulfillment
    new_fulfillment = dto.get("fulfillmentStatus")
    if new_fulfillment and new_fulfillment != order.fulfillment_status:
        previous_fulfillment = order.fulfillment_status
        order.fulfillment_status = new_fulfillment
        if new_fulfillment == "SHIPPED" and not order.shipped_at:
            order.shipped_at = now
        if new_fulfillment == "DELIVERED" and not order.delivered_at:
            order.delivered_at = now
        activities.append((
            "FULFILLMENT_STATUS_UPDATED",
            f"Fulfillment status changed {previous_fulfillment} -> {new_fulfillment}.",
            None,
        ))

    if "shippingMethod" in dto:
        order.shipping_method = p.to_nullable(dto["shippingMethod"])
    if "adminNote" in dto:
        order.admin_note = p.to_nullable(dto["adminNote"])
        activities.append(("ADMIN_NOTE_UPDATED", "Admin note updated.", None))
    if "shippingCompany" in dto:
        order.shipping_company = p.to_nullable(dto["shippingCompany"])
    if "trackingNumber" in dto:
        order.tracking_number = p.to_nullable(dto["trackingNumber"])
    if "trackingUrl" in dto:
        order.tracking_url = p.to_nullable(dto["trackingUrl"])

    # ── stock
    action = resolve_stock_action(previous_status, order.status, bool(order.stock_deducted))
    if action == RESTORE:
        order.items = apply_stock_for_items(list(order.items or []), RESTORE)
        order.stock_deducted = False
        activities.append((
            "STOCK_RESTORED",
            "Stock restored because the order was cancelled or refunded.",
            {"status": order.status, "items": _stock_meta(order.items)},
        ))
    elif action == DEDUCT:
        order.items = apply_stock_for_items(list(order.items or []), DEDUCT)
        order.stock_deducted = True
        activities.append((
            "STOCK_DEDUCTED",
            "Stock deducted again because the order became active.",
            {"status": order.status, "items": _stock_meta(order.items)},
        ))

    for event_type, message, meta in activities:
        _add_activity(order, actor, event_type, message, meta)
