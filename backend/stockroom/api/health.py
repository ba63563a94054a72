from fastapi import APIRouter, Depends

from stockroom.db import Store, get_store

router = APIRouter()


@router.get("/health", tags=["health"])
def health(store: Store = Depends(get_store)):
    db_ok = store.ping()
    return {
        "status": "ok" if db_ok else "degraded",
        "db": db_ok,
    }
