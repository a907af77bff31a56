# shop_admin/services/pricing.py
"""
Pricing-policy calculator.

A product carries a policy (target margin plus variable percentages and fixed
per-unit costs) and a list of extra expense items. From those and the unit
cost the calculator derives the minimum net price that covers every cost,
the suggested sale price at the target margin, and the profit/margin the
current sale price actually yields.
"""
import math

from shop_admin.api.utils.payload import round2

PERCENT_FIELDS = (
    "targetMarginPercent",
    "platformCommissionPercent",
    "paymentFeePercent",
    "marketingPercent",
    "operationalPercent",
    "discountBufferPercent",
)
VARIABLE_PERCENT_FIELDS = PERCENT_FIELDS[1:]
AMOUNT_FIELDS = ("packagingCost", "shippingCost", "fixedCost")

DEFAULT_PRICING_POLICY = {
    "targetMarginPercent": 30,
    "platformCommissionPercent": 0,
    "paymentFeePercent": 0,
    "marketingPercent": 0,
    "operationalPercent": 0,
    "discountBufferPercent": 0,
    "packagingCost": 0,
    "shippingCost": 0,
    "fixedCost": 0,
}

MAX_PERCENT = 95


def _finite(value) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def clamp_percent(value) -> float:
    number = _finite(value)
    if number is None:
        return 0.0
    return round2(min(max(0.0, number), MAX_PERCENT))


def normalize_amount(value) -> float:
    number = _finite(value)
    if number is None:
        return 0.0
    return round2(max(0.0, number))


def normalize_pricing_policy(policy: dict | None = None, fallback: dict | None = None) -> dict:
    """Merge `policy` over `fallback` (or the defaults) and clamp every field."""
    base = dict(DEFAULT_PRICING_POLICY)
    base.update(fallback or {})
    policy = policy or {}

    result = {}
    for field in PERCENT_FIELDS:
        value = policy.get(field)
        result[field] = clamp_percent(base[field] if value is None else value)
    for field in AMOUNT_FIELDS:
        value = policy.get(field)
        result[field] = normalize_amount(base[field] if value is None else value)
    return result


def normalize_expense_items(items: list | None) -> list[dict]:
    out = []
    for item in items or []:
        name = str(item.get("name") or "").strip()
        if not name:
            continue
        out.append({"name": name, "amount": normalize_amount(item.get("amount"))})
    return out


def calculate_pricing_summary(
    *,
    cost_price,
    tax_rate,
    vat_included: bool,
    pricing_policy: dict,
    expense_items: list[dict],
    current_sale_price,
) -> dict:
    unit_cost = normalize_amount(cost_price)
    tax = clamp_percent(tax_rate)

    fixed_expense_total = round2(
        pricing_policy["packagingCost"]
        + pricing_policy["shippingCost"]
        + pricing_policy["fixedCost"]
        + sum(item["amount"] for item in expense_items)
    )
    variable_expense_percent = round2(sum(pricing_policy[f] for f in VARIABLE_PERCENT_FIELDS))

    base_cost = unit_cost + fixed_expense_total
    variable_denominator = max(0.01, 1 - variable_expense_percent / 100)
    minimum_net_price = round2(base_cost / variable_denominator)

    margin_denominator = max(0.01, 1 - pricing_policy["targetMarginPercent"] / 100)
    suggested_net_price = round2(minimum_net_price / margin_denominator)

    suggested_sale_price = round2(
        suggested_net_price * (1 + tax / 100) if vat_included else suggested_net_price
    )

    sale_price = normalize_amount(current_sale_price)
    net_sale_price = sale_price / (1 + tax / 100) if vat_included else sale_price
    variable_cost_at_sale = net_sale_price * (variable_expense_percent / 100)
    estimated_profit = round2(net_sale_price - (base_cost + variable_cost_at_sale))
    estimated_margin_percent = round2(
        (estimated_profit / net_sale_price) * 100 if net_sale_price > 0 else 0
    )

    return {
        "unitCost": round2(unit_cost),
        "fixedExpenseTotal": fixed_expense_total,
        "variableExpensePercent": variable_expense_percent,
        "minimumNetPrice": minimum_net_price,
        "suggestedNetPrice": suggested_net_price,
        "suggestedSalePrice": suggested_sale_price,
        "estimatedProfit": estimated_profit,
        "estimatedMarginPercent": estimated_margin_percent,
    }
