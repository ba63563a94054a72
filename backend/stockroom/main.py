from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockroom.api.health import router as health_router
from stockroom.api.routes_catalogue import router as catalogue_router
from stockroom.api.routes_movements import router as movements_router
from stockroom.config import settings
from stockroom.db import Store


def create_app(store: Optional[Store] = None) -> FastAPI:
    """
    Build the application around a store handle. Without one, a store is
    built from settings. The store is opened (and the schema ensured) on
    startup and closed on shutdown.
    """
    store = store or Store.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # startup
        store.open()
        store.init_schema(reset=settings.RESET_DB)
        app.state.store = store
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="Stockroom - Inventory Backend", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        # malformed input is a 400 like every other input error
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(health_router, prefix="/api", tags=["health"])

    app.include_router(catalogue_router, prefix="/api/products", tags=["catalogue"])

    app.include_router(movements_router, tags=["movements"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
