# shop_admin/services/seed_service.py
"""
Idempotent seeders: default admin, default representative, store settings
and a small sample catalog. Every step skips rows that already exist, so the
seed can run on every start-up (SEED_ON_STARTUP) or via `flask seed`.
"""
import json
from decimal import Decimal

from flask import current_app

from shop_admin.extensions import db
from shop_admin.models import AdminUser, Category, Product, Setting
from shop_admin.models.user import ROLE_ADMIN, ROLE_REPRESENTATIVE
from shop_admin.services.pricing import DEFAULT_PRICING_POLICY

DEFAULT_ADMIN_FULL_NAME = "Admin Kullanici"

DEFAULT_WEBSITE_CONFIG = {
    "theme": {
        "brandName": "Er Zeytin",
        "tagline": "Egeden Sofrana Dogal Lezzet",
        "adminButtonLabel": "Admin Giris",
    },
    "announcement": "Yeni hasat soguk sikim zeytinyaglari stokta.",
    "navItems": [
        {"label": "Ana Sayfa", "href": "#hero"},
        {"label": "Kategoriler", "href": "#categories"},
        {"label": "Urunler", "href": "#products"},
        {"label": "Kampanyalar", "href": "#campaigns"},
        {"label": "Iletisim", "href": "#footer"},
    ],
    "heroSlides": [
        {
            "badge": "Yeni Hasat",
            "title": "Erken Hasat Sizma Zeytinyagi",
            "subtitle": "Tas degirmen - soguk sikim",
            "description": "Ayvalik ve Memecik zeytinlerinden uretilen premium seriyi hemen kesfedin.",
            "ctaLabel": "Urunleri Kesfet",
            "ctaHref": "#products",
            "imageUrl": "https://images.unsplash.com/photo-1474979266404-7eaacbcd87c5?auto=format&fit=crop&w=1400&q=80",
        },
        {
            "badge": "Sinirli Seri",
            "title": "Gurme Tadim Paketi",
            "subtitle": "3 farkli yoresel aroma",
            "description": "Limon kabugu, kekik ve klasik naturel sizma cesitleri tek kutuda.",
            "ctaLabel": "Paketi Incele",
            "ctaHref": "#products",
            "imageUrl": "https://images.unsplash.com/photo-1474979266404-7eaacbcd87c5?auto=format&fit=crop&w=1400&q=80",
        },
    ],
    "promoCards": [
        {
            "title": "3 Al 2 Ode",
            "subtitle": "500ml cam sise serilerinde gecerli",
            "ctaLabel": "Kampanyayi Ac",
            "ctaHref": "#products",
            "imageUrl": "https://images.unsplash.com/photo-1615485290382-441e4d049cb5?auto=format&fit=crop&w=1000&q=80",
        },
        {
            "title": "Kurumsal Tedarik",
            "subtitle": "Restoran ve cafe ozel fiyatlari",
            "ctaLabel": "Teklif Al",
            "ctaHref": "#footer",
            "imageUrl": "https://images.unsplash.com/photo-1578916171728-46686eac8d58?auto=format&fit=crop&w=1000&q=80",
        },
    ],
    "featureItems": [
        {"icon": "truck", "title": "Hizli Kargo",
         "description": "Saat 14:00e kadar verilen siparisler ayni gun kargoda."},
        {"icon": "leaf", "title": "Dogal Uretim",
         "description": "Katkisiz, filtreli veya filtresiz naturel sizma secenekleri."},
        {"icon": "shield", "title": "Guvenli Odeme",
         "description": "3D secure destekli guvenli online odeme altyapisi."},
        {"icon": "gift", "title": "Hediye Paketi",
         "description": "Ozel kutu ve not karti ile gonderim secenekleri."},
    ],
    "newsletterTitle": "Lezzet Bultenine Katilin",
    "newsletterDescription": "Indirimler, yeni hasat duyurulari ve tarifler e-posta kutunuza gelsin.",
    "footerColumns": [
        {"title": "Kurumsal", "links": ["Hakkimizda", "Uretim Sureci", "Sertifikalar", "Iletisim"]},
        {"title": "Musteri Hizmetleri", "links": ["Sikca Sorulan Sorular", "Kargo ve Teslimat", "Iade Politikasi"]},
        {"title": "Hesabim", "links": ["Siparislerim", "Favorilerim", "Adres Bilgilerim"]},
    ],
}

DEFAULT_SETTINGS = {
    "storeName": "Zeytin Commerce",
    "supportEmail": "destek@zeytin.local",
    "currency": "TRY",
    "timezone": "Europe/Istanbul",
    "taxRate": "20",
    "websiteConfig": json.dumps(DEFAULT_WEBSITE_CONFIG, ensure_ascii=False),
}

EMPTY_PRICING_SUMMARY = {
    "unitCost": 0,
    "fixedExpenseTotal": 0,
    "variableExpensePercent": 0,
    "minimumNetPrice": 0,
    "suggestedNetPrice": 0,
    "suggestedSalePrice": 0,
    "estimatedProfit": 0,
    "estimatedMarginPercent": 0,
}

SAMPLE_CATEGORIES = [
    {
        "name": "Sizma Zeytinyagi",
        "slug": "sizma-zeytinyagi",
        "description": "Erken hasat ve olgun hasat naturel sizma zeytinyagi cesitleri.",
        "image_url": "https://images.unsplash.com/photo-1474979266404-7eaacbcd87c5?auto=format&fit=crop&w=1400&q=80",
        "display_order": 1,
        "seo_keywords": ["zeytinyagi", "sizma", "erken hasat"],
    },
    {
        "name": "Gemlik Siyah Zeytin",
        "slug": "gemlik-siyah-zeytin",
        "description": "Kahvaltilik, sele ve salamura siyah zeytin urunleri.",
        "image_url": "https://images.unsplash.com/photo-1606787366850-de6330128bfc?auto=format&fit=crop&w=1400&q=80",
        "display_order": 2,
        "seo_keywords": ["siyah zeytin", "gemlik", "kahvaltilik"],
    },
    {
        "name": "Yesil Zeytin",
        "slug": "yesil-zeytin",
        "description": "Kirilmis, cizik ve dolmalik yesil zeytin cesitleri.",
        "image_url": "https://images.unsplash.com/photo-1593001874117-c99c800e3eb5?auto=format&fit=crop&w=1400&q=80",
        "display_order": 3,
        "seo_keywords": ["yesil zeytin", "kirilmis", "cizik"],
    },
]

# (name, slug, sku, barcode, price, compare_at, cost, stock, min_stock, weight,
#  short description, description, tags, image, category slug)
SAMPLE_PRODUCTS = [
    (
        "Erken Hasat Sizma Zeytinyagi 5 Litre Teneke", "erken-hasat-sizma-zeytinyagi-5-litre-teneke",
        "ERZ-ZYT-5LT-001", "8690000005001", "1299.90", "1449.90", "899.00", 36, 8, "5.000",
        "Yuksek polifenol degerli premium erken hasat sizma zeytinyagi.",
        "Ayvalik zeytinlerinden soguk sikim yontemiyle uretilen 5 litre ekonomik teneke ambalaj. "
        "Salata, soguk meze ve yemeklerde yogun aroma sunar.",
        ["erken hasat", "5 litre", "teneke", "premium"],
        "https://images.unsplash.com/photo-1474979266404-7eaacbcd87c5?auto=format&fit=crop&w=1200&q=80",
        "sizma-zeytinyagi",
    ),
    (
        "Naturel Sizma Zeytinyagi 1 Litre Cam Sise", "naturel-sizma-zeytinyagi-1-litre-cam-sise",
        "ERZ-ZYT-1LT-002", "8690000001002", "349.90", "399.90", "240.00", 74, 12, "1.000",
        "Gunluk kullanim icin ideal cam sise naturel sizma zeytinyagi.",
        "Filtreli naturel sizma 1 litre cam sise. Taze meyvemsilik ve dengeli yakicilik profili "
        "ile mutfakta cok yonlu kullanim sunar.",
        ["1 litre", "cam sise", "naturel sizma"],
        "https://images.unsplash.com/photo-1498837167922-ddd27525d352?auto=format&fit=crop&w=1200&q=80",
        "sizma-zeytinyagi",
    ),
    (
        "Naturel Birinci Zeytinyagi 2 Litre Pet", "naturel-birinci-zeytinyagi-2-litre-pet",
        "ERZ-ZYT-2LT-003", "8690000002003", "529.90", "579.90", "360.00", 58, 10, "2.000",
        "Kizartma ve sicak yemekler icin uygun naturel birinci zeytinyagi.",
        "2 litre pet ambalajda ekonomik secenek. Dengeli aroma yapisi sayesinde sicak yemek ve "
        "gunluk mutfak kullanimina uygundur.",
        ["2 litre", "pet sise", "naturel birinci"],
        "https://images.unsplash.com/photo-1615485290382-441e4d049cb5?auto=format&fit=crop&w=1200&q=80",
        "sizma-zeytinyagi",
    ),
    (
        "Gemlik Siyah Zeytin 1 Kg", "gemlik-siyah-zeytin-1-kg",
        "ERZ-SYZ-1KG-004", "8690000010004", "279.90", "319.90", "190.00", 82, 15, "1.000",
        "Etli dokusu ve ince kabuklu yapisiyla kahvaltilik Gemlik siyah zeytin.",
        "Dogal salamura yontemiyle olgunlastirilan Gemlik tipi siyah zeytin. Kahvalti sofralari "
        "ve meze sunumlari icin uygundur.",
        ["gemlik", "siyah zeytin", "1 kg", "kahvaltilik"],
        "https://images.unsplash.com/photo-1551754655-cd27e38d2076?auto=format&fit=crop&w=1200&q=80",
        "gemlik-siyah-zeytin",
    ),
    (
        "Sele Siyah Zeytin 500 gr", "sele-siyah-zeytin-500-gr",
        "ERZ-SYZ-500G-005", "8690000005005", "189.90", "214.90", "126.00", 67, 12, "0.500",
        "Daha yogun tat profiline sahip geleneksel sele siyah zeytin.",
        "Az tuzlu ve etli sele zeytin secenegi. Kahvalti tabaklari ve atistirmalik servisler "
        "icin idealdir.",
        ["sele", "siyah zeytin", "500 gr"],
        "https://images.unsplash.com/photo-1593001874117-c99c800e3eb5?auto=format&fit=crop&w=1200&q=80",
        "gemlik-siyah-zeytin",
    ),
    (
        "Kirilmis Yesil Zeytin 900 gr", "kirilmis-yesil-zeytin-900-gr",
        "ERZ-YSZ-900G-006", "8690000009006", "239.90", "269.90", "165.00", 59, 10, "0.900",
        "Limon ve dogal baharat notalari ile kirilmis yesil zeytin.",
        "Geleneksel usulde kirilarak hazirlanan yesil zeytin. Ferah aroma profili ile kahvalti "
        "ve salatalara uyumludur.",
        ["yesil zeytin", "kirilmis", "900 gr"],
        "https://images.unsplash.com/photo-1606787366850-de6330128bfc?auto=format&fit=crop&w=1200&q=80",
        "yesil-zeytin",
    ),
    (
        "Dolmalik Yesil Zeytin 700 gr", "dolmalik-yesil-zeytin-700-gr",
        "ERZ-YSZ-700G-007", "8690000007007", "219.90", "249.90", "151.00", 51, 8, "0.700",
        "Iri taneli dolmalik yesil zeytin.",
        "Iri taneli secme dolmalik yesil zeytin. Peynir dolgulu sunumlar ve meze tabaklari "
        "icin uygundur.",
        ["yesil zeytin", "dolmalik", "700 gr"],
        "https://images.unsplash.com/photo-1578916171728-46686eac8d58?auto=format&fit=crop&w=1200&q=80",
        "yesil-zeytin",
    ),
]


def seed_admin() -> AdminUser:
    cfg = current_app.config
    username = cfg.get("ADMIN_USERNAME") or "admin"
    user = AdminUser.query.filter_by(username=username).first()

    if user:
        changed = False
        if not user.full_name:
            user.full_name = DEFAULT_ADMIN_FULL_NAME
            changed = True
        if user.role != ROLE_ADMIN:
            user.role = ROLE_ADMIN
            changed = True
        if not user.is_active:
            user.is_active = True
            changed = True
        if changed:
            db.session.commit()
            current_app.logger.info("Default admin repaired: %s", username)
        return user

    user = AdminUser(username=username, full_name=DEFAULT_ADMIN_FULL_NAME, role=ROLE_ADMIN, is_active=True)
    user.set_password(cfg.get("ADMIN_PASSWORD") or "admin123")
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Default admin created: %s", username)
    return user


def seed_representative() -> AdminUser:
    cfg = current_app.config
    username = cfg.get("REP_USERNAME") or "temsilci"
    user = AdminUser.query.filter_by(username=username).first()
    if user:
        return user

    user = AdminUser(
        username=username,
        full_name=cfg.get("REP_FULL_NAME") or "Musteri Temsilcisi",
        role=ROLE_REPRESENTATIVE,
        is_active=True,
    )
    user.set_password(cfg.get("REP_PASSWORD") or "temsilci123")
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Default representative created: %s", username)
    return user


def seed_settings() -> int:
    existing = {row.key for row in Setting.query.all()}
    created = 0
    for key, value in DEFAULT_SETTINGS.items():
        if key in existing:
            continue
        db.session.add(Setting(key=key, value=value))
        created += 1
    db.session.commit()
    return created


def _available_product_slug(base: str) -> str:
    candidate = base
    suffix = 2
    while Product.query.filter_by(slug=candidate).first():
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def seed_catalog() -> int:
    categories = {}
    for data in SAMPLE_CATEGORIES:
        category = Category.query.filter_by(slug=data["slug"]).first()
        if category is None:
            category = Category(
                seo_title=data["name"],
                seo_description=data["description"],
                is_active=True,
                **data,
            )
            db.session.add(category)
            db.session.flush()
        categories[data["slug"]] = category

    created = 0
    for (name, slug, sku, barcode, price, compare_at, cost, stock, min_stock, weight,
         short_description, description, tags, image, category_slug) in SAMPLE_PRODUCTS:
        if Product.query.filter_by(sku=sku).first():
            continue
        db.session.add(Product(
            name=name,
            slug=_available_product_slug(slug),
            sku=sku,
            barcode=barcode,
            brand="Er Zeytin",
            price=Decimal(price),
            compare_at_price=Decimal(compare_at),
            cost_price=Decimal(cost),
            tax_rate=Decimal("10.00"),
            vat_included=True,
            stock=stock,
            min_stock=min_stock,
            weight=Decimal(weight),
            short_description=short_description,
            description=description,
            tags=list(tags),
            images=[image],
            featured_image=image,
            has_variants=False,
            variants=[],
            pricing_policy=dict(DEFAULT_PRICING_POLICY),
            expense_items=[],
            pricing_summary=dict(EMPTY_PRICING_SUMMARY),
            seo_title=name,
            seo_description=short_description,
            seo_keywords=list(tags),
            is_active=True,
            category=categories.get(category_slug),
        ))
        db.session.flush()
        created += 1

    db.session.commit()
    return created


def run_all(with_catalog: bool = True) -> dict:
    seed_admin()
    seed_representative()
    settings_created = seed_settings()
    products_created = seed_catalog() if with_catalog else 0
    current_app.logger.info(
        "Seed finished: %s settings, %s products created", settings_created, products_created
    )
    return {"settings": settings_created, "products": products_created}
