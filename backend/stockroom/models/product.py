from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from stockroom.db import Base

# largest value a signed 64-bit INTEGER column holds
MAX_QUANTITY = 2**63 - 1


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    sku = Column(String(32), unique=True, index=True, nullable=False)
    name = Column(String(256), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(128), nullable=True, index=True)
    unit = Column(String(32), nullable=False)
    # never negative; the movement engine clamps, the catalog validates
    quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=True)
    location = Column(String(256), nullable=True)
    supplier = Column(String(256), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)

    movements = relationship(
        "Movement",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Product sku={self.sku} name={self.name} quantity={self.quantity}>"
