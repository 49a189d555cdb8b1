"""FastAPI application for the school fee billing service"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.config import settings
from schoolfees.database import close_db, get_db, init_db
from schoolfees.core.handlers import register_exception_handlers
from schoolfees.core.logging import get_logger, setup_logging
from schoolfees.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from schoolfees.api.v1.router import api_router

setup_logging()
logger = get_logger(__name__)

# Every route shares one per-client budget
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting fee billing service", extra={"environment": settings.ENVIRONMENT})
    # Local runs only; deployed databases are migrated with Alembic
    if settings.is_development:
        await init_db()
        logger.info("Database tables created")
    yield
    logger.info("Stopping fee billing service")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Fee catalog, invoice generation, payment ledger and collection reports",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=[settings.ALLOWED_HEADERS],
    expose_headers=["X-Request-ID", "X-Process-Time", "Content-Disposition"],
)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
# Added last so it wraps everything and every log line gets the request id
app.add_middleware(RequestContextMiddleware)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness: the process is up"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health/ready", tags=["Health"])
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness: the ledger database answers queries"""
    await db.execute(text("SELECT 1"))
    return {"status": "ready", "database": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "schoolfees.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
