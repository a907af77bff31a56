import uuid

import pytest

from shop_admin.extensions import db
from shop_admin.models import Category
from shop_admin.services.catalog_service import slugify


@pytest.mark.parametrize("value, fallback, expected", [
    ("Çiğ Şeker Ürün İyi", "urun", "cig-seker-urun-iyi"),
    ("IŞIK Ağacı", "urun", "isik-agaci"),
    ("Crème Brûlée", "urun", "creme-brulee"),
    ("  --Gemlik  Zeytin--  ", "kategori", "gemlik-zeytin"),
    ("!!!", "kategori", "kategori"),
    ("", "urun", "urun"),
])
def test_slugify(value, fallback, expected):
    assert slugify(value, fallback) == expected


def _product_payload(**overrides):
    data = {"name": "Sizma Zeytinyagi 1L", "sku": "ZY-1L", "price": 100, "stock": 10}
    data.update(overrides)
    return data


# ── Categories ───────────────────────────────────────────────────────────────

def test_catalog_admin_routes_require_token(client):
    assert client.get("/api/catalog/categories").status_code == 401
    r = client.post("/api/catalog/products", json=_product_payload())
    assert r.status_code == 401
    assert r.get_json() == {"error": "Authentication required", "statusCode": 401}


def test_create_category_makes_slug_unique(client, admin_headers, events):
    r1 = client.post("/api/catalog/categories", json={"name": "Yeşil Zeytin"}, headers=admin_headers)
    r2 = client.post("/api/catalog/categories", json={"name": "Yesil Zeytin"}, headers=admin_headers)

    assert r1.status_code == 201 and r2.status_code == 201
    assert r1.get_json()["slug"] == "yesil-zeytin"
    assert r2.get_json()["slug"] == "yesil-zeytin-2"
    assert r1.get_json()["displayOrder"] == 0
    assert r1.get_json()["isActive"] is True
    assert [e for e, _ in events] == ["catalog.category.created", "catalog.category.created"]


def test_create_category_validates_name(client, admin_headers):
    r = client.post("/api/catalog/categories", json={"name": "X"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json()["statusCode"] == 400
    assert "name" in r.get_json()["error"]


def test_update_category_regenerates_slug(client, admin_headers, category, events):
    r = client.patch(
        f"/api/catalog/categories/{category.id}",
        json={"name": "Erken Hasat", "seoKeywords": [" yag ", ""]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.get_json()
    assert body["slug"] == "erken-hasat"
    assert body["seoKeywords"] == ["yag"]
    assert events[-1][0] == "catalog.category.updated"

    # own slug does not count as taken
    r = client.patch(
        f"/api/catalog/categories/{category.id}",
        json={"slug": "erken-hasat"},
        headers=admin_headers,
    )
    assert r.get_json()["slug"] == "erken-hasat"


def test_update_missing_category_is_404(client, admin_headers):
    r = client.patch(f"/api/catalog/categories/{uuid.uuid4()}", json={"name": "Nope"}, headers=admin_headers)
    assert r.status_code == 404


def test_public_categories_hide_inactive_and_sort(client):
    db.session.add_all([
        Category(name="Second", slug="second", display_order=2),
        Category(name="First", slug="first", display_order=1),
        Category(name="Hidden", slug="hidden", display_order=0, is_active=False),
    ])
    db.session.commit()

    r = client.get("/api/catalog/public/categories")
    assert r.status_code == 200
    assert [c["slug"] for c in r.get_json()] == ["first", "second"]


def test_admin_category_list_includes_products(client, admin_headers, category, make_product):
    make_product(sku="P-1", category=category)
    r = client.get("/api/catalog/categories", headers=admin_headers)
    assert r.status_code == 200
    (cat,) = r.get_json()
    assert [p["sku"] for p in cat["products"]] == ["P-1"]


# ── Products ─────────────────────────────────────────────────────────────────

def test_create_product_with_variants(client, admin_headers, category, events):
    payload = _product_payload(
        stock=99,
        categoryId=category.id,
        images=["a.jpg", " b.jpg ", ""],
        featuredImage="c.jpg",
        variants=[
            {"title": " 1 Litre ", "sku": "ZY-1L-A", "price": 100, "stock": 3, "optionOne": " cam "},
            {"title": "5 Litre", "sku": "ZY-1L-B", "price": 400, "stock": 4, "isDefault": True},
        ],
    )
    r = client.post("/api/catalog/products", json=payload, headers=admin_headers)

    assert r.status_code == 201, r.get_json()
    body = r.get_json()
    assert body["hasVariants"] is True
    assert body["stock"] == 7
    assert body["images"] == ["a.jpg", "b.jpg"]
    assert body["featuredImage"] == "a.jpg"
    assert body["slug"] == "sizma-zeytinyagi-1l"
    assert body["taxRate"] == "20.00"
    assert body["vatIncluded"] is True
    assert body["price"] == "100.00"
    assert body["category"]["id"] == category.id
    assert body["variants"][0] == {
        "title": "1 Litre", "sku": "ZY-1L-A", "price": 100.0, "stock": 3,
        "isDefault": False, "optionOne": "cam",
    }
    assert events[-1][0] == "catalog.product.created"
    assert events[-1][1]["product"]["sku"] == "ZY-1L"


def test_create_product_auto_price_from_policy(client, admin_headers):
    r = client.post(
        "/api/catalog/products",
        json=_product_payload(costPrice=100, autoPriceFromPolicy=True),
        headers=admin_headers,
    )
    assert r.status_code == 201
    body = r.get_json()
    assert body["price"] == "171.43"
    assert body["pricingPolicy"]["targetMarginPercent"] == 30
    assert body["pricingSummary"]["suggestedSalePrice"] == 171.43
    assert body["pricingSummary"]["estimatedMarginPercent"] == 30.0


def test_product_without_variants_clamps_stock(client, admin_headers):
    r = client.post("/api/catalog/products", json=_product_payload(stock=-4), headers=admin_headers)
    assert r.status_code == 400

    r = client.post("/api/catalog/products", json=_product_payload(stock=6), headers=admin_headers)
    body = r.get_json()
    assert body["hasVariants"] is False
    assert body["variants"] == []
    assert body["stock"] == 6
    assert body["featuredImage"] is None


@pytest.mark.parametrize("overrides, fragment", [
    ({"price": 1e308}, "price"),
    ({"price": 100000000}, "price"),
    ({"price": "100"}, "price"),
    ({"stock": 10**400}, "stock"),
    ({"stock": 2**31}, "stock"),
    ({"weight": 1e12}, "weight"),
    ({"costPrice": "12.5"}, "costPrice"),
    ({"variants": [{"title": "1L", "sku": "ZY-1L-A", "price": 1e308, "stock": 1}]}, "variants[0]"),
])
def test_product_numbers_out_of_range_are_rejected(client, admin_headers, overrides, fragment):
    r = client.post("/api/catalog/products", json=_product_payload(**overrides), headers=admin_headers)
    assert r.status_code == 400
    assert fragment in r.get_json()["error"]


def test_auto_price_above_column_limit_is_rejected(client, admin_headers):
    r = client.post(
        "/api/catalog/products",
        json=_product_payload(costPrice=99999999.99, autoPriceFromPolicy=True),
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert "price" in r.get_json()["error"]
    assert client.get("/api/catalog/products", headers=admin_headers).get_json() == []


def test_malformed_catalog_ids_are_400(client, admin_headers):
    r = client.patch("/api/catalog/products/abc", json={"name": "Nope"}, headers=admin_headers)
    assert r.status_code == 400
    assert "id" in r.get_json()["error"]

    r = client.patch("/api/catalog/categories/abc", json={"name": "Nope"}, headers=admin_headers)
    assert r.status_code == 400


def test_duplicate_sku_and_barcode_conflict(client, admin_headers, make_product):
    make_product(sku="ZY-1L", barcode="869000")

    r = client.post("/api/catalog/products", json=_product_payload(), headers=admin_headers)
    assert r.status_code == 409

    r = client.post(
        "/api/catalog/products",
        json=_product_payload(sku="ZY-2L", barcode=" 869000 "),
        headers=admin_headers,
    )
    assert r.status_code == 409


def test_unknown_or_malformed_category(client, admin_headers):
    r = client.post(
        "/api/catalog/products",
        json=_product_payload(categoryId=str(uuid.uuid4())),
        headers=admin_headers,
    )
    assert r.status_code == 404

    r = client.post("/api/catalog/products", json=_product_payload(categoryId="abc"), headers=admin_headers)
    assert r.status_code == 400


def test_update_product_rules(client, admin_headers, category, make_product, events):
    product = make_product(
        sku="VAR-1",
        category=category,
        variants=[{"title": "S", "sku": "VAR-1-S", "price": 10, "stock": 2}],
    )

    r = client.patch(
        f"/api/catalog/products/{product.id}",
        json={"hasVariants": False, "stock": 5, "categoryId": "", "pricingPolicy": {"marketingPercent": 5}},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.get_json()
    body = r.get_json()
    assert body["variants"] == []
    assert body["stock"] == 5
    assert body["category"] is None
    assert body["pricingPolicy"]["marketingPercent"] == 5
    assert body["pricingPolicy"]["targetMarginPercent"] == 30
    assert events[-1][0] == "catalog.product.updated"


def test_update_product_sku_conflict(client, admin_headers, make_product):
    make_product(sku="A-1")
    other = make_product(sku="B-1")
    r = client.patch(f"/api/catalog/products/{other.id}", json={"sku": "A-1"}, headers=admin_headers)
    assert r.status_code == 409


def test_public_products_hide_inactive(client, make_product):
    hidden_cat = Category(name="Off", slug="off", is_active=False)
    db.session.add(hidden_cat)
    db.session.commit()

    make_product(sku="VISIBLE")
    make_product(sku="OFF-PRODUCT", is_active=False)
    make_product(sku="OFF-CATEGORY", category=hidden_cat)

    r = client.get("/api/catalog/public/products")
    assert r.status_code == 200
    assert [p["sku"] for p in r.get_json()] == ["VISIBLE"]
