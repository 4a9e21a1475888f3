import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitsocial.api.router import api_router
from fitsocial.core.config import settings
from fitsocial.db.async_session import shutdown_async_database, startup_async_database
from fitsocial.services.error_handler import register_exception_handlers

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    redirect_slashes=False,
)

# Session cookies need credentialed CORS, so origins are listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    logger.info(f"Starting up FitSocial API with {settings.STORAGE_BACKEND} storage...")
    if settings.STORAGE_BACKEND == "database":
        await startup_async_database()
        logger.info("Async database initialized successfully")
    logger.info("FitSocial API startup completed successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on application shutdown."""
    if settings.STORAGE_BACKEND == "database":
        await shutdown_async_database()
        logger.info("Async database connections closed")
    logger.info("FitSocial API shutdown completed successfully")


@app.get("/")
async def root():
    return {"status": "ok", "message": "Welcome to FitSocial API"}
