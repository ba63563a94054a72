from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from stockroom.models.product import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: str, for_update: bool = False) -> Optional[Product]:
        """
        Return product by id. With for_update=True the row is locked until the
        surrounding transaction ends (SQLite ignores FOR UPDATE; its writers are
        serialized by BEGIN IMMEDIATE instead).
        """
        qry = self.db.query(Product).filter(Product.id == product_id)
        if for_update:
            qry = qry.with_for_update()
        return qry.populate_existing().first()

    def sku_exists(self, sku: str) -> bool:
        return self.db.query(Product.id).filter(Product.sku == sku).first() is not None

    def list(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        low_stock: bool = False,
    ) -> List[Product]:
        query = self.db.query(Product)
        if q:
            like = f"%{q}%"
            query = query.filter(
                or_(
                    Product.name.ilike(like),
                    Product.sku.ilike(like),
                    Product.description.ilike(like),
                )
            )
        if category:
            query = query.filter(Product.category == category)
        if low_stock:
            query = query.filter(
                Product.min_stock.isnot(None), Product.quantity <= Product.min_stock
            )
        return query.order_by(Product.name.asc()).all()

    def add(self, product: Product) -> Product:
        self.db.add(product)
        self.db.flush()
        return product

    def update_fields(self, product: Product, fields: Dict, updated_at: datetime) -> Product:
        for name, value in fields.items():
            setattr(product, name, value)
        product.updated_at = updated_at
        self.db.flush()
        return product

    def set_quantity(self, product: Product, quantity: int, updated_at: datetime) -> Product:
        product.quantity = quantity
        product.updated_at = updated_at
        self.db.flush()
        return product

    def delete(self, product: Product):
        self.db.delete(product)
        self.db.flush()
