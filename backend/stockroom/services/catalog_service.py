import secrets
import string
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.models.product import MAX_QUANTITY, Product
from stockroom.repositories.product_repo import ProductRepository
from stockroom.schemas.product_schema import ProductCreate, ProductPatch
from stockroom.services.errors import InvalidInput, NotFound, StorageError
from stockroom.utils.logging import get_logger
from stockroom.utils.transactions import smart_transaction

log = get_logger("catalog")

SKU_PREFIX = "PROD-"
SKU_ALPHABET = string.ascii_uppercase + string.digits
SKU_ATTEMPTS = 5

REQUIRED_FIELDS = ("name", "unit")
NON_NEGATIVE_FIELDS = ("quantity", "min_stock")


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _gen_sku(self) -> str:
        return SKU_PREFIX + "".join(secrets.choice(SKU_ALPHABET) for _ in range(6))

    def _unique_sku(self) -> str:
        for _ in range(SKU_ATTEMPTS):
            sku = self._gen_sku()
            if not self.repo.sku_exists(sku):
                return sku
        raise StorageError("Could not allocate a unique SKU; try again")

    def get_product(self, product_id: str) -> Product:
        p = self.repo.get(product_id)
        if not p:
            raise NotFound("Product not found.")
        return p

    def list_products(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        low_stock: bool = False,
    ) -> List[Product]:
        return self.repo.list(q=q, category=category, low_stock=low_stock)

    def create_product(self, data: ProductCreate) -> Product:
        """Create a product with a server generated id and SKU."""
        name = (data.name or "").strip()
        unit = (data.unit or "").strip()
        if not name or not unit:
            raise InvalidInput("Name and Unit are mandatory.")
        if data.quantity is not None and data.quantity < 0:
            raise InvalidInput("Quantity cannot be negative.")
        if data.min_stock is not None and data.min_stock < 0:
            raise InvalidInput("Minimum stock cannot be negative.")
        for value in (data.quantity, data.min_stock):
            if value is not None and value > MAX_QUANTITY:
                raise InvalidInput(f"Quantities cannot exceed {MAX_QUANTITY}.")

        try:
            with smart_transaction(self.db, write=True):
                p = Product(
                    id=str(uuid4()),
                    sku=self._unique_sku(),
                    name=name,
                    description=data.description or None,
                    category=data.category or None,
                    unit=unit,
                    quantity=data.quantity or 0,
                    min_stock=data.min_stock,
                    location=data.location or None,
                    supplier=data.supplier or None,
                    created_at=self._now(),
                    updated_at=None,
                )
                self.repo.add(p)
        except SQLAlchemyError as e:
            log.error(f"create product failed: {e}", exc_info=True)
            raise StorageError(f"Product could not be created: {e}") from e
        log.info(f"created product {p.id} sku={p.sku} quantity={p.quantity}")
        return p

    def _patch_fields(self, patch: ProductPatch) -> Dict:
        fields = patch.model_dump(exclude_unset=True)
        if not fields:
            raise InvalidInput("No fields to update.")
        for name in REQUIRED_FIELDS:
            if name in fields:
                value = (fields[name] or "").strip()
                if not value:
                    raise InvalidInput(f"{name} cannot be empty.")
                fields[name] = value
        if "quantity" in fields and fields["quantity"] is None:
            raise InvalidInput("quantity cannot be null.")
        for name in NON_NEGATIVE_FIELDS:
            value = fields.get(name)
            if value is not None and value < 0:
                raise InvalidInput(f"{name} cannot be negative.")
            if value is not None and value > MAX_QUANTITY:
                raise InvalidInput(f"{name} cannot exceed {MAX_QUANTITY}.")
        return fields

    def update_product(self, product_id: str, patch: ProductPatch) -> Product:
        """Apply only the fields present in `patch` and refresh updated_at."""
        fields = self._patch_fields(patch)
        try:
            with smart_transaction(self.db, write=True):
                p = self.repo.get(product_id, for_update=True)
                if not p:
                    raise NotFound("Product not found.")
                self.repo.update_fields(p, fields, self._now())
        except SQLAlchemyError as e:
            log.error(f"update product {product_id} failed: {e}", exc_info=True)
            raise StorageError(f"Product could not be updated: {e}") from e
        log.info(f"updated product {product_id} fields={sorted(fields)}")
        return p

    def delete_product(self, product_id: str):
        """Delete a product; its movements go with it."""
        try:
            with smart_transaction(self.db, write=True):
                p = self.repo.get(product_id, for_update=True)
                if not p:
                    raise NotFound("Product not found.")
                self.repo.delete(p)
        except SQLAlchemyError as e:
            log.error(f"delete product {product_id} failed: {e}", exc_info=True)
            raise StorageError(f"Product could not be deleted: {e}") from e
        log.info(f"deleted product {product_id}")
