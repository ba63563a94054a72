from typing import List, Optional

from sqlalchemy.orm import Session

from stockroom.models.movement import Movement


class MovementRepository:
    """Append-only access to the movement log."""

    def __init__(self, db: Session):
        self.db = db

    def add(self, movement: Movement) -> Movement:
        self.db.add(movement)
        self.db.flush()
        return movement

    def list(self, product_id: Optional[str] = None, limit: Optional[int] = None) -> List[Movement]:
        query = self.db.query(Movement)
        if product_id:
            query = query.filter(Movement.product_id == product_id)
        query = query.order_by(Movement.created_at.desc(), Movement.id)
        if limit:
            query = query.limit(limit)
        return query.all()
