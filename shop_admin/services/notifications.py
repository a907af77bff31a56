# shop_admin/services/notifications.py
from flask import current_app

from shop_admin.api.utils.email import send_email
from shop_admin.models.common import money
from shop_admin.services.settings_service import get_public


def _store_name() -> str:
    return get_public().get("storeName") or "Zeytin Commerce"


def _address_lines(address: dict | None) -> list[str]:
    if not address:
        return []
    parts = [
        address.get("fullName"),
        address.get("line1"),
        address.get("line2"),
        " ".join(x for x in (address.get("postalCode"), address.get("district")) if x),
        " / ".join(x for x in (address.get("city"), address.get("country")) if x),
        address.get("phone"),
    ]
    return [part for part in parts if part]


def order_confirmation_body(order, store_name: str) -> str:
    lines = [
        f"Hello {order.customer_name},",
        "",
        "thank you for your order. Here is a summary:",
        f"Order number: {order.order_number}",
        "",
        "Shipping address:",
    ]
    lines += [f"  {line}" for line in _address_lines(order.shipping_address)]
    if order.customer_note:
        lines.append(f"Note: {order.customer_note}")

    lines.append("")
    lines.append("Items:")
    for it in order.items or []:
        title = it.get("productName") or ""
        if it.get("variantTitle"):
            title = f"{title} ({it['variantTitle']})"
        lines.append(f"• {title} × {it.get('quantity')} – {money(it.get('unitPrice'))} {order.currency}")

    lines += [
        "",
        f"Subtotal: {money(order.subtotal)} {order.currency}",
        f"Shipping: {money(order.shipping_fee)} {order.currency}",
    ]
    if order.discount_amount:
        lines.append(f"Discount: -{money(order.discount_amount)} {order.currency}")
    if order.tax_amount:
        lines.append(f"Tax: {money(order.tax_amount)} {order.currency}")
    lines += [
        f"Total: {money(order.grand_total)} {order.currency}",
        "",
        "Thank you for shopping with us.",
        store_name,
    ]
    return "\n".join(lines)


def send_order_emails(order) -> None:
    """Customer confirmation plus owner notice. Failures are logged, never raised."""
    try:
        store_name = _store_name()
        send_email(
            subject=f"Order confirmation {order.order_number} – {store_name}",
            recipients=[order.customer_email],
            body=order_confirmation_body(order, store_name),
        )
    except Exception:
        current_app.logger.exception("Order confirmation e-mail failed for %s", order.order_number)

    owner = current_app.config.get("ORDER_NOTIFY_EMAIL")
    if not owner:
        return
    try:
        send_email(
            subject=f"New order {order.order_number}",
            recipients=[owner],
            body=(
                f"Order: {order.order_number}\n"
                f"Customer: {order.customer_name} <{order.customer_email}>\n"
                f"Phone: {order.customer_phone or '-'}\n"
                f"Payment: {order.payment_method} / {order.payment_status}\n"
                f"Total: {money(order.grand_total)} {order.currency}"
            ),
        )
    except Exception:
        current_app.logger.exception("Owner e-mail failed for %s", order.order_number)
