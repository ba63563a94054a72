import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from stockroom.db import Base


class MovementKind(str, enum.Enum):
    IN = "in"
    OUT = "out"
    ADJUST = "adjust"


class Movement(Base):
    """Immutable stock movement. Rows go away only with their product."""

    __tablename__ = "movements"
    id = Column(String(36), primary_key=True)
    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind = Column(String(16), nullable=False)  # in, out, adjust
    # requested quantity, not the clamped effect
    quantity = Column(Integer, nullable=False)
    reason = Column(String(512), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    product = relationship("Product", back_populates="movements")

    def __repr__(self):
        return f"<Movement product_id={self.product_id} kind={self.kind} quantity={self.quantity}>"
