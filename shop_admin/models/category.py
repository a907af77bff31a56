from shop_admin.extensions import db
from shop_admin.models.common import iso, new_uuid, utcnow


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(150), nullable=False)
    slug = db.Column(db.String(180), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.Text, nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    seo_title = db.Column(db.Text, nullable=True)
    seo_description = db.Column(db.Text, nullable=True)
    seo_keywords = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    products = db.relationship("Product", back_populates="category", lazy=True)

    def to_dict(self, with_products: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "imageUrl": self.image_url,
            "displayOrder": self.display_order,
            "seoTitle": self.seo_title,
            "seoDescription": self.seo_description,
            "seoKeywords": list(self.seo_keywords or []),
            "isActive": bool(self.is_active),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if with_products:
            data["products"] = [p.to_dict(with_category=False) for p in (self.products or [])]
        return data

    def __repr__(self):
        return f"<Category {self.name}>"
