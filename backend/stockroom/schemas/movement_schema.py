# backend/stockroom/schemas/movement_schema.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockroom.models.product import MAX_QUANTITY
from stockroom.schemas.product_schema import ProductOut, as_utc

class MovementIn(BaseModel):
    product_id: Optional[str] = None
    kind: Optional[str] = None
    quantity: Optional[int] = Field(None, le=MAX_QUANTITY)
    reason: Optional[str] = None

    @field_validator("product_id", "reason")
    @classmethod
    def _strip(cls, v):
        if v is None:
            return v
        return v.strip() or None

    @field_validator("kind")
    @classmethod
    def _normalize_kind(cls, v):
        if v is None:
            return v
        return v.strip().lower()

class MovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    product_id: str
    kind: str
    quantity: int
    reason: Optional[str] = None
    created_at: datetime

    utc_timestamps = field_validator("created_at")(as_utc)

class MovementCreatedOut(BaseModel):
    movement: MovementOut
    # absent when the product could not be read back after commit
    product: Optional[ProductOut] = None
