import uuid

from sqlalchemy import Column, String, Text, Numeric, JSON, DateTime, func
from feed_doctor.core.database import Base


class Product(Base):
    """Catalog row read by the analysis engine. Owned by the product catalog."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(36), nullable=False, index=True)

    name = Column(String(500), nullable=False, default="")
    sku = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    category_id = Column(String(36), nullable=True)
    price = Column(Numeric(12, 2), nullable=True)
    images = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Product id={self.id} tenant={self.tenant_id} name={self.name!r}>"
