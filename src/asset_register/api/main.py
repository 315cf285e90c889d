import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from asset_register.api.routes import registry, reports
from asset_register.models.database import get_engine, init_db

logger = logging.getLogger("asset_register.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting asset-register API")
    engine = get_engine()
    init_db(engine)
    yield
    logger.info("Shutting down asset-register API")


app = FastAPI(
    title="asset-register API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = time.time() - start
    logger.info(
        "%s %s %d %.3fs",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    return response


app.include_router(registry.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")


@app.get("/api/v1/health")
def health():
    """Root-level health check."""
    return {"status": "ok", "service": "asset-register"}
