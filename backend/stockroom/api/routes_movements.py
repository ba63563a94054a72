from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from stockroom.db import get_db
from stockroom.schemas.movement_schema import MovementCreatedOut, MovementIn, MovementOut
from stockroom.schemas.product_schema import ProductOut
from stockroom.services.errors import InvalidInput, NotFound, StorageError
from stockroom.services.movement_service import MovementService

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.get("", summary="List movements, newest first")
def list_movements(
    product_id: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    svc = MovementService(db)
    items = svc.list_movements(product_id=product_id, limit=limit)
    return [MovementOut.model_validate(m).model_dump(mode="json") for m in items]


@router.post("", summary="Record a stock movement", status_code=status.HTTP_201_CREATED)
def create_movement(payload: MovementIn, db: Session = Depends(get_db)):
    """
    payload: { "product_id": "...", "kind": "in" | "out" | "adjust", "quantity": 5, "reason": "..." }
    returns { "movement": {...}, "product": {...} }
    """
    svc = MovementService(db)
    try:
        result = svc.apply_movement(
            payload.product_id, payload.kind, payload.quantity, payload.reason
        )
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

    out = MovementCreatedOut(
        movement=MovementOut.model_validate(result.movement),
        product=ProductOut.model_validate(result.product) if result.product else None,
    )
    if result.product is None:
        return out.model_dump(mode="json", exclude={"product"})
    return out.model_dump(mode="json")
