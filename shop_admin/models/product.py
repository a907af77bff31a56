from shop_admin.extensions import db
from shop_admin.models.common import iso, money, new_uuid, utcnow


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(300), unique=True, nullable=True)
    sku = db.Column(db.String(100), unique=True, nullable=False)
    barcode = db.Column(db.String(100), unique=True, nullable=True)
    brand = db.Column(db.Text, nullable=True)

    price = db.Column(db.Numeric(10, 2), nullable=False)
    compare_at_price = db.Column(db.Numeric(10, 2), nullable=True)
    cost_price = db.Column(db.Numeric(10, 2), nullable=True)
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False, default=20)
    vat_included = db.Column(db.Boolean, nullable=False, default=True)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    weight = db.Column(db.Numeric(10, 3), nullable=True)
    width = db.Column(db.Numeric(10, 2), nullable=True)
    height = db.Column(db.Numeric(10, 2), nullable=True)
    length = db.Column(db.Numeric(10, 2), nullable=True)

    short_description = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    images = db.Column(db.JSON, nullable=False, default=list)
    featured_image = db.Column(db.Text, nullable=True)

    # [{title, sku, price, stock, optionOne?, optionTwo?, optionThree?, isDefault}]
    has_variants = db.Column(db.Boolean, nullable=False, default=False)
    variants = db.Column(db.JSON, nullable=False, default=list)

    pricing_policy = db.Column(db.JSON, nullable=False, default=dict)
    expense_items = db.Column(db.JSON, nullable=False, default=list)
    pricing_summary = db.Column(db.JSON, nullable=False, default=dict)

    seo_title = db.Column(db.Text, nullable=True)
    seo_description = db.Column(db.Text, nullable=True)
    seo_keywords = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    category_id = db.Column(
        db.String(36), db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    category = db.relationship("Category", back_populates="products")

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def find_variant(self, sku: str | None) -> int:
        """Index of the variant carrying `sku`, -1 when there is none."""
        if not sku:
            return -1
        for idx, variant in enumerate(self.variants or []):
            if variant.get("sku") == sku:
                return idx
        return -1

    def to_dict(self, with_category: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "sku": self.sku,
            "barcode": self.barcode,
            "brand": self.brand,
            "price": money(self.price),
            "compareAtPrice": money(self.compare_at_price),
            "costPrice": money(self.cost_price),
            "taxRate": money(self.tax_rate),
            "vatIncluded": bool(self.vat_included),
            "stock": self.stock,
            "minStock": self.min_stock,
            "weight": money(self.weight, 3),
            "width": money(self.width),
            "height": money(self.height),
            "length": money(self.length),
            "shortDescription": self.short_description,
            "description": self.description,
            "tags": list(self.tags or []),
            "images": list(self.images or []),
            "featuredImage": self.featured_image,
            "hasVariants": bool(self.has_variants),
            "variants": list(self.variants or []),
            "pricingPolicy": dict(self.pricing_policy or {}),
            "expenseItems": list(self.expense_items or []),
            "pricingSummary": dict(self.pricing_summary or {}),
            "seoTitle": self.seo_title,
            "seoDescription": self.seo_description,
            "seoKeywords": list(self.seo_keywords or []),
            "isActive": bool(self.is_active),
            "categoryId": self.category_id,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if with_category:
            data["category"] = self.category.to_dict() if self.category else None
        return data

    def __repr__(self) -> str:
        return f"<Product {self.sku} {self.name}>"
