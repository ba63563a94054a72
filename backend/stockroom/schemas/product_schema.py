# backend/stockroom/schemas/product_schema.py
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic import ConfigDict

from stockroom.models.product import MAX_QUANTITY

def as_utc(v: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back naive; they are stored as UTC
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    sku: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    unit: str
    quantity: int
    min_stock: Optional[int] = None
    location: Optional[str] = None
    supplier: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    utc_timestamps = field_validator("created_at", "updated_at")(as_utc)

class ProductCreate(BaseModel):
    # name/unit are checked by the catalog service so a missing one is a 400
    name: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = Field(None, le=MAX_QUANTITY)
    min_stock: Optional[int] = Field(None, le=MAX_QUANTITY)
    location: Optional[str] = None
    supplier: Optional[str] = None

class ProductPatch(BaseModel):
    """Every field optional; only fields present in the request are applied."""
    model_config = ConfigDict(extra="forbid")
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[int] = Field(None, le=MAX_QUANTITY)
    min_stock: Optional[int] = Field(None, le=MAX_QUANTITY)
    location: Optional[str] = None
    supplier: Optional[str] = None
