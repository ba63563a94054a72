from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
from sqlalchemy.orm import Session
from stockroom.db import get_db
from stockroom.schemas.product_schema import ProductCreate, ProductOut, ProductPatch
from stockroom.services.catalog_service import CatalogService
from stockroom.services.errors import InvalidInput, NotFound, StorageError

router = APIRouter(tags=["catalogue"])

def _to_dict(p):
    return ProductOut.model_validate(p).model_dump(mode="json")

@router.get("", summary="List products")
def list_products(
    q: Optional[str] = Query(None, description="search term (name, sku, description)"),
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, description="only products at or below their minimum stock"),
    db: Session = Depends(get_db),
):
    svc = CatalogService(db)
    items = svc.list_products(q=q, category=category, low_stock=low_stock)
    return [_to_dict(p) for p in items]

@router.get("/{product_id}", summary="Get product")
def get_product(product_id: str, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        return _to_dict(svc.get_product(product_id))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("", summary="Create product", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        return _to_dict(svc.create_product(payload))
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/{product_id}", summary="Update product")
@router.patch("/{product_id}", summary="Update product")
def update_product(product_id: str, payload: ProductPatch, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        p = svc.update_product(product_id, payload)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "Product updated successfully.", "product": _to_dict(p)}

@router.delete("/{product_id}", summary="Delete product and its movements")
def delete_product(product_id: str, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        svc.delete_product(product_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "Product and its movements have been deleted."}
