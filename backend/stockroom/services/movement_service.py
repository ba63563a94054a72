from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.models.movement import Movement, MovementKind
from stockroom.models.product import MAX_QUANTITY, Product
from stockroom.repositories.movement_repo import MovementRepository
from stockroom.repositories.product_repo import ProductRepository
from stockroom.services.errors import InvalidInput, NotFound, StorageError
from stockroom.utils.logging import get_logger
from stockroom.utils.transactions import smart_transaction

log = get_logger("movements")


@dataclass
class MovementResult:
    movement: Movement
    # None when the post-commit read-back failed; the movement is durable anyway
    product: Optional[Product]


def compute_quantity(current: int, kind: MovementKind, quantity: int) -> int:
    """New stock level for a movement, floored at zero."""
    if kind is MovementKind.ADJUST:
        new_qty = quantity
    elif kind is MovementKind.IN:
        new_qty = current + quantity
    else:
        new_qty = current - quantity
    return max(0, new_qty)


class MovementService:
    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepository(db)
        self.movements = MovementRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _validate(self, product_id, kind, quantity) -> MovementKind:
        if not isinstance(product_id, str) or not product_id.strip():
            raise InvalidInput("Invalid movement data: product id is required")
        try:
            parsed = MovementKind(kind)
        except ValueError:
            raise InvalidInput(
                f"Invalid movement data: kind must be one of in, out, adjust (got {kind!r})"
            )
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidInput("Invalid movement data: quantity must be an integer")
        if quantity <= 0:
            raise InvalidInput("Invalid movement data: quantity must be greater than 0")
        if quantity > MAX_QUANTITY:
            raise InvalidInput(f"Invalid movement data: quantity cannot exceed {MAX_QUANTITY}")
        return parsed

    def apply_movement(
        self,
        product_id: str,
        kind,
        quantity: int,
        reason: Optional[str] = None,
    ) -> MovementResult:
        """
        Record a stock movement and update the product's quantity atomically.

        `in` adds, `out` subtracts and `adjust` sets the absolute level; the
        result is floored at zero, so withdrawing more than is on hand empties
        the product instead of failing. The movement row stores the requested
        quantity.

        Raises InvalidInput (nothing read, or an `in` that would overflow the
        stored quantity, nothing written), NotFound (nothing written) or
        StorageError (transaction rolled back).
        """
        kind = self._validate(product_id, kind, quantity)

        try:
            with smart_transaction(self.db, write=True):
                product = self.products.get(product_id, for_update=True)
                if not product:
                    raise NotFound("Product not found for movement")

                old_qty = product.quantity
                new_qty = compute_quantity(old_qty, kind, quantity)
                if new_qty > MAX_QUANTITY:
                    raise InvalidInput(
                        f"Movement would raise stock above {MAX_QUANTITY} for product {product_id}"
                    )
                now = self._now()
                self.products.set_quantity(product, new_qty, now)

                movement = Movement(
                    id=str(uuid4()),
                    product_id=product.id,
                    kind=kind.value,
                    quantity=quantity,
                    reason=reason or None,
                    created_at=now,
                )
                self.movements.add(movement)
                # commit happens at smart_transaction context exit
        except SQLAlchemyError as e:
            log.error(
                f"movement failed product_id={product_id} kind={kind.value} qty={quantity}: {e}",
                exc_info=True,
            )
            raise StorageError(f"Movement could not be recorded: {e}") from e

        # committed and immutable; detached so a failed read-back rollback
        # can't expire it
        self.db.expunge(movement)

        if kind is MovementKind.OUT and quantity > old_qty:
            log.warning(
                f"out of {quantity} exceeds stock {old_qty} for product_id={product_id}; clamped to 0"
            )
        log.info(
            f"movement {movement.id} product_id={product_id} kind={kind.value} "
            f"qty={quantity} stock {old_qty} -> {new_qty}"
        )
        return MovementResult(movement=movement, product=self._read_back(product))

    def _read_back(self, product: Product) -> Optional[Product]:
        try:
            with smart_transaction(self.db):
                self.db.refresh(product)
            return product
        except SQLAlchemyError:
            log.warning(
                f"read-back of product_id={product.id} failed after commit", exc_info=True
            )
            return None

    def list_movements(self, product_id: Optional[str] = None, limit: Optional[int] = None) -> List[Movement]:
        return self.movements.list(product_id=product_id, limit=limit)
