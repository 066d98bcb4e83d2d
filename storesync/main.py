from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storesync.api.v1.endpoints.chat import router as chat_router
from storesync.api.v1.endpoints.knowledge_bases import router as knowledge_bases_router
from storesync.api.v1.endpoints.replicas import router as replicas_router
from storesync.api.v1.endpoints.shopify import router as shopify_router
from storesync.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.sensay_api_key:
        _logger.warning("SENSAY_API_KEY is not set, sync, replicas and chat endpoints will fail")
    _logger.info("Store sync service started")
    yield
    _logger.info("Store sync service stopped")


app = FastAPI(title="Store Sync", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Failed responses carry ``error`` instead of ``detail``.
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


app.include_router(shopify_router, prefix="/api")
app.include_router(replicas_router, prefix="/api")
app.include_router(knowledge_bases_router, prefix="/api")
app.include_router(chat_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Store sync API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storesync.main:app", host="0.0.0.0", port=8000, reload=True)
