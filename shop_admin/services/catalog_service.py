# shop_admin/services/catalog_service.py
import re
import unicodedata

from werkzeug.exceptions import BadRequest, Conflict, NotFound

from shop_admin.api.utils import payload as p
from shop_admin.extensions import db
from shop_admin.models import Category, Product
from shop_admin.realtime import realtime_events
from shop_admin.services.pricing import (
    AMOUNT_FIELDS,
    PERCENT_FIELDS,
    calculate_pricing_summary,
    normalize_expense_items,
    normalize_pricing_policy,
)

CATEGORY_SLUG_FALLBACK = "kategori"
PRODUCT_SLUG_FALLBACK = "urun"

_TURKISH = str.maketrans({
    "Ç": "c", "ç": "c",
    "Ğ": "g", "ğ": "g",
    "İ": "i", "I": "i", "ı": "i",
    "Ö": "o", "ö": "o",
    "Ş": "s", "ş": "s",
    "Ü": "u", "ü": "u",
})

WEIGHT_MAX = 9999999.999


# ── Slugs ────────────────────────────────────────────────────────────────────

def slugify(value: str, fallback: str) -> str:
    raw = (value or "").translate(_TURKISH)
    normalized = unicodedata.normalize("NFKD", raw)
    normalized = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    normalized = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return normalized or fallback


def _unique_slug(model, base: str, exclude_id: str | None = None) -> str:
    candidate = base
    suffix = 1
    while True:
        q = model.query.filter(model.slug == candidate)
        if exclude_id:
            q = q.filter(model.id != exclude_id)
        if not q.first():
            return candidate
        suffix += 1
        candidate = f"{base}-{suffix}"


def unique_category_slug(value: str, exclude_id: str | None = None) -> str:
    return _unique_slug(Category, slugify(value, CATEGORY_SLUG_FALLBACK), exclude_id)


def unique_product_slug(value: str, exclude_id: str | None = None) -> str:
    return _unique_slug(Product, slugify(value, PRODUCT_SLUG_FALLBACK), exclude_id)


# ── Payload parsing ──────────────────────────────────────────────────────────

def _str_list(values) -> list[str]:
    return [v.strip() for v in values or [] if v and v.strip()]


def parse_category_payload(data: dict, partial: bool = False) -> dict:
    dto = {}
    if not partial or "name" in data:
        dto["name"] = p.req_str(data, "name", min_length=2).strip()
    if data.get("slug") is not None:
        dto["slug"] = p.opt_str(data, "slug", min_length=2)
    for key in ("description", "imageUrl", "seoTitle", "seoDescription"):
        if key in data:
            dto[key] = p.opt_str(data, key)
    if data.get("displayOrder") is not None:
        dto["displayOrder"] = p.opt_int(data, "displayOrder", minimum=0)
    if "seoKeywords" in data:
        dto["seoKeywords"] = p.opt_str_list(data, "seoKeywords")
    if data.get("isActive") is not None:
        dto["isActive"] = p.opt_bool(data, "isActive")
    return dto


def _parse_variant(raw: dict, idx: int) -> dict:
    prefix = f"variants[{idx}]"
    try:
        return {
            "title": p.req_str(raw, "title"),
            "sku": p.req_str(raw, "sku"),
            "price": p.req_number(raw, "price", places=2),
            "stock": p.req_int(raw, "stock", minimum=0),
            "optionOne": p.opt_str(raw, "optionOne"),
            "optionTwo": p.opt_str(raw, "optionTwo"),
            "optionThree": p.opt_str(raw, "optionThree"),
            "isDefault": p.opt_bool(raw, "isDefault"),
        }
    except BadRequest as e:
        raise BadRequest(f"{prefix}: {e.description}")


def _parse_policy(raw: dict) -> dict:
    policy = {}
    for key in PERCENT_FIELDS + AMOUNT_FIELDS:
        value = p.opt_number(raw, key, minimum=0, places=2)
        if value is not None:
            policy[key] = value
    return policy


def _parse_expense_item(raw: dict, idx: int) -> dict:
    try:
        return {
            "name": p.req_str(raw, "name", min_length=2),
            "amount": p.req_number(raw, "amount", minimum=0, places=2),
        }
    except BadRequest as e:
        raise BadRequest(f"expenseItems[{idx}]: {e.description}")


# numeric product fields: key -> (decimal places, maximum, nullable on update)
_PRODUCT_NUMBERS = {
    "compareAtPrice": (2, p.MONEY_MAX, True),
    "costPrice": (2, p.MONEY_MAX, True),
    "taxRate": (2, 100, False),
    "weight": (3, WEIGHT_MAX, True),
    "width": (2, p.MONEY_MAX, True),
    "height": (2, p.MONEY_MAX, True),
    "length": (2, p.MONEY_MAX, True),
}


def parse_product_payload(data: dict, partial: bool = False) -> dict:
    dto = {}
    if not partial or "name" in data:
        dto["name"] = p.req_str(data, "name", min_length=2).strip()
    if not partial or "sku" in data:
        dto["sku"] = p.req_str(data, "sku", min_length=2).strip()
    if not partial or "price" in data:
        dto["price"] = p.req_number(data, "price", minimum=0, places=2)
    if not partial or "stock" in data:
        dto["stock"] = p.req_int(data, "stock", minimum=0)

    if data.get("slug") is not None:
        dto["slug"] = p.opt_str(data, "slug", min_length=2)

    for key in ("barcode", "brand", "shortDescription", "description",
                "featuredImage", "seoTitle", "seoDescription"):
        if key in data:
            dto[key] = p.opt_str(data, key)

    for key, (places, maximum, nullable) in _PRODUCT_NUMBERS.items():
        if key not in data:
            continue
        value = p.opt_number(data, key, minimum=0, maximum=maximum, places=places)
        if value is not None or nullable:
            dto[key] = value

    if data.get("minStock") is not None:
        dto["minStock"] = p.opt_int(data, "minStock", minimum=0)

    for key in ("vatIncluded", "hasVariants", "autoPriceFromPolicy", "isActive"):
        if data.get(key) is not None:
            dto[key] = p.opt_bool(data, key)

    for key in ("tags", "images", "seoKeywords"):
        if key in data:
            dto[key] = p.opt_str_list(data, key)

    if "variants" in data:
        raw_variants = p.opt_object_list(data, "variants") or []
        dto["variants"] = [_parse_variant(v, i) for i, v in enumerate(raw_variants)]

    if data.get("pricingPolicy") is not None:
        dto["pricingPolicy"] = _parse_policy(p.opt_object(data, "pricingPolicy"))

    if "expenseItems" in data:
        raw_items = p.opt_object_list(data, "expenseItems") or []
        dto["expenseItems"] = [_parse_expense_item(it, i) for i, it in enumerate(raw_items)]

    if "categoryId" in data:
        category_id = data.get("categoryId")
        if category_id not in (None, ""):
            if not isinstance(category_id, str) or not p.UUID_RE.match(category_id):
                raise BadRequest("'categoryId' must be a UUID.")
        dto["categoryId"] = category_id or None

    return dto


# ── Normalisation helpers ────────────────────────────────────────────────────

def normalize_variants(variants: list | None) -> list[dict]:
    out = []
    for v in variants or []:
        item = {
            "title": str(v.get("title") or "").strip(),
            "sku": str(v.get("sku") or "").strip(),
            "price": float(v.get("price") or 0),
            "stock": int(v.get("stock") or 0),
            "isDefault": bool(v.get("isDefault")),
        }
        for option in ("optionOne", "optionTwo", "optionThree"):
            value = p.to_nullable(v.get(option))
            if value is not None:
                item[option] = value
        out.append(item)
    return out


def resolve_product_stock(fallback_stock, has_variants: bool, variants: list[dict]) -> int:
    if has_variants and variants:
        return sum(int(v.get("stock") or 0) for v in variants)
    return max(0, int(fallback_stock or 0))


def pick_featured_image(images: list[str], requested: str | None) -> str | None:
    if not images:
        return None
    preferred = p.to_nullable(requested)
    if preferred and preferred in images:
        return preferred
    return images[0]


def _resolve_category(category_id: str | None) -> Category | None:
    if not category_id:
        return None
    return db.get_or_404(Category, category_id, description="Category not found.")


def _assert_sku_free(sku: str) -> None:
    if Product.query.filter_by(sku=sku).first():
        raise Conflict("This SKU is already in use.")


def _assert_barcode_free(barcode: str) -> None:
    if Product.query.filter_by(barcode=barcode).first():
        raise Conflict("This barcode is already in use.")


def _price_product(product: Product, dto: dict, policy: dict, expense_items: list[dict], requested_price) -> None:
    common = dict(
        cost_price=float(product.cost_price or 0),
        tax_rate=float(product.tax_rate or 0),
        vat_included=bool(product.vat_included),
        pricing_policy=policy,
        expense_items=expense_items,
    )
    initial = calculate_pricing_summary(current_sale_price=requested_price, **common)
    resolved_price = initial["suggestedSalePrice"] if dto.get("autoPriceFromPolicy") else requested_price
    if resolved_price > p.MONEY_MAX:
        db.session.rollback()
        raise BadRequest(f"'price' must be <= {p.MONEY_MAX}.")
    summary = calculate_pricing_summary(current_sale_price=resolved_price, **common)

    product.price = p.round2(resolved_price)
    product.pricing_policy = policy
    product.expense_items = expense_items
    product.pricing_summary = summary


# ── Categories ───────────────────────────────────────────────────────────────

def list_public_categories() -> list[Category]:
    return (
        Category.query.filter_by(is_active=True)
        .order_by(Category.display_order.asc(), Category.created_at.desc())
        .all()
    )


def list_categories() -> list[Category]:
    return Category.query.order_by(Category.display_order.asc(), Category.created_at.desc()).all()


def create_category(dto: dict) -> Category:
    category = Category(
        name=dto["name"],
        slug=unique_category_slug(dto.get("slug") or dto["name"]),
        description=p.to_nullable(dto.get("description")),
        image_url=p.to_nullable(dto.get("imageUrl")),
        display_order=dto.get("displayOrder") or 0,
        seo_title=p.to_nullable(dto.get("seoTitle")),
        seo_description=p.to_nullable(dto.get("seoDescription")),
        seo_keywords=_str_list(dto.get("seoKeywords")),
        is_active=dto.get("isActive", True),
    )
    db.session.add(category)
    db.session.commit()

    realtime_events.emit("catalog.category.created", {"category": category.to_dict()})
    return category


def update_category(category_id: str, dto: dict) -> Category:
    category = db.get_or_404(Category, category_id, description="Category not found.")

    if "name" in dto:
        category.name = dto["name"]
    if dto.get("slug"):
        category.slug = unique_category_slug(dto["slug"], exclude_id=category.id)
    elif "name" in dto:
        category.slug = unique_category_slug(dto["name"], exclude_id=category.id)

    if "description" in dto:
        category.description = p.to_nullable(dto["description"])
    if "imageUrl" in dto:
        category.image_url = p.to_nullable(dto["imageUrl"])
    if "displayOrder" in dto:
        category.display_order = dto["displayOrder"]
    if "seoTitle" in dto:
        category.seo_title = p.to_nullable(dto["seoTitle"])
    if "seoDescription" in dto:
        category.seo_description = p.to_nullable(dto["seoDescription"])
    if "seoKeywords" in dto:
        category.seo_keywords = _str_list(dto["seoKeywords"])
    if "isActive" in dto:
        category.is_active = dto["isActive"]

    db.session.commit()

    realtime_events.emit("catalog.category.updated", {"category": category.to_dict()})
    return category


# ── Products ─────────────────────────────────────────────────────────────────

def list_public_products() -> list[Product]:
    products = Product.query.filter_by(is_active=True).order_by(Product.created_at.desc()).all()
    return [pr for pr in products if pr.category is None or pr.category.is_active]


def list_products() -> list[Product]:
    return Product.query.order_by(Product.created_at.desc()).all()


def create_product(dto: dict) -> Product:
    _assert_sku_free(dto["sku"])

    barcode = p.to_nullable(dto.get("barcode"))
    if barcode:
        _assert_barcode_free(barcode)

    category = _resolve_category(dto.get("categoryId"))
    variants = normalize_variants(dto.get("variants"))
    has_variants = dto["hasVariants"] if "hasVariants" in dto else len(variants) > 0
    variants = variants if has_variants else []
    images = _str_list(dto.get("images"))

    def _opt(key):
        value = dto.get(key)
        return p.round2(value) if value is not None else None

    product = Product(
        name=dto["name"],
        slug=unique_product_slug(dto.get("slug") or dto["name"]),
        sku=dto["sku"],
        barcode=barcode,
        brand=p.to_nullable(dto.get("brand")),
        compare_at_price=_opt("compareAtPrice"),
        cost_price=_opt("costPrice"),
        tax_rate=dto["taxRate"] if dto.get("taxRate") is not None else 20,
        vat_included=dto.get("vatIncluded", True),
        stock=resolve_product_stock(dto["stock"], has_variants, variants),
        min_stock=dto.get("minStock") or 0,
        weight=dto.get("weight"),
        width=_opt("width"),
        height=_opt("height"),
        length=_opt("length"),
        short_description=p.to_nullable(dto.get("shortDescription")),
        description=p.to_nullable(dto.get("description")),
        tags=_str_list(dto.get("tags")),
        images=images,
        featured_image=pick_featured_image(images, dto.get("featuredImage")),
        has_variants=has_variants,
        variants=variants,
        seo_title=p.to_nullable(dto.get("seoTitle")),
        seo_description=p.to_nullable(dto.get("seoDescription")),
        seo_keywords=_str_list(dto.get("seoKeywords")),
        is_active=dto.get("isActive", True),
        category=category,
    )
    _price_product(
        product,
        dto,
        normalize_pricing_policy(dto.get("pricingPolicy")),
        normalize_expense_items(dto.get("expenseItems")),
        dto["price"],
    )

    db.session.add(product)
    db.session.commit()

    realtime_events.emit("catalog.product.created", {"product": product.to_dict()})
    return product


def update_product(product_id: str, dto: dict) -> Product:
    product = db.get_or_404(Product, product_id, description="Product not found.")

    if dto.get("sku") and dto["sku"] != product.sku:
        _assert_sku_free(dto["sku"])

    if "barcode" in dto:
        barcode = p.to_nullable(dto["barcode"])
        if barcode and barcode != product.barcode:
            _assert_barcode_free(barcode)
        product.barcode = barcode

    if "categoryId" in dto:
        product.category = _resolve_category(dto["categoryId"])

    if "name" in dto:
        product.name = dto["name"]
    if dto.get("slug"):
        product.slug = unique_product_slug(dto["slug"], exclude_id=product.id)
    elif "name" in dto:
        product.slug = unique_product_slug(dto["name"], exclude_id=product.id)

    if "sku" in dto:
        product.sku = dto["sku"]
    if "brand" in dto:
        product.brand = p.to_nullable(dto["brand"])

    for key, attr in (("compareAtPrice", "compare_at_price"), ("costPrice", "cost_price"),
                      ("width", "width"), ("height", "height"), ("length", "length")):
        if key in dto:
            setattr(product, attr, p.round2(dto[key]) if dto[key] is not None else None)
    if "weight" in dto:
        product.weight = dto["weight"]
    if "taxRate" in dto:
        product.tax_rate = dto["taxRate"]
    if "vatIncluded" in dto:
        product.vat_included = dto["vatIncluded"]
    if "minStock" in dto:
        product.min_stock = dto["minStock"]

    if "shortDescription" in dto:
        product.short_description = p.to_nullable(dto["shortDescription"])
    if "description" in dto:
        product.description = p.to_nullable(dto["description"])
    if "tags" in dto:
        product.tags = _str_list(dto["tags"])
    if "images" in dto:
        product.images = _str_list(dto["images"])
    if "featuredImage" in dto or "images" in dto:
        preferred = dto["featuredImage"] if "featuredImage" in dto else product.featured_image
        product.featured_image = pick_featured_image(list(product.images or []), preferred)

    if "variants" in dto:
        variants = normalize_variants(dto["variants"])
        product.variants = variants
        if "hasVariants" not in dto:
            product.has_variants = len(variants) > 0
    if "hasVariants" in dto:
        product.has_variants = dto["hasVariants"]
        if not dto["hasVariants"]:
            product.variants = []

    fallback_stock = dto["stock"] if "stock" in dto else product.stock
    product.stock = resolve_product_stock(fallback_stock, product.has_variants, list(product.variants or []))

    if "seoTitle" in dto:
        product.seo_title = p.to_nullable(dto["seoTitle"])
    if "seoDescription" in dto:
        product.seo_description = p.to_nullable(dto["seoDescription"])
    if "seoKeywords" in dto:
        product.seo_keywords = _str_list(dto["seoKeywords"])
    if "isActive" in dto:
        product.is_active = dto["isActive"]

    policy = normalize_pricing_policy(dto.get("pricingPolicy"), product.pricing_policy)
    expense_items = normalize_expense_items(
        dto["expenseItems"] if "expenseItems" in dto else product.expense_items
    )
    requested_price = dto["price"] if "price" in dto else float(product.price or 0)
    _price_product(product, dto, policy, expense_items, requested_price)

    db.session.commit()

    realtime_events.emit("catalog.product.updated", {"product": product.to_dict()})
    return product
