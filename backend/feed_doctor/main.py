from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from feed_doctor.core.config import settings
from feed_doctor.core.logging import configure_logger, api_logger
from feed_doctor.core.database import init_db
from feed_doctor.api.v1.endpoints import router as api_router
from feed_doctor.middleware.request_logger import RequestLoggerMiddleware
from feed_doctor.services.ai_provider import AIProviderAdapter, AIProviderConfig

# Initialize logger
logger = configure_logger()


def ai_provider_configured(app_settings=settings) -> bool:
    return AIProviderAdapter(AIProviderConfig.from_settings(app_settings)).is_configured()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME}...")

    try:
        await init_db()
        logger.info("Database connection established.")
    except Exception as e:
        logger.error(f"Database init failed: {e}")

    if ai_provider_configured():
        logger.info(f"AI provider configured: {settings.AI_PROVIDER}")
    else:
        logger.warning("AI provider not configured, using rule-based analysis only")

    api_logger.info("Request logging middleware initialized")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Multi-dimensional product content quality analysis with AI-assisted optimization.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Middleware: CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logger middleware
    app.add_middleware(RequestLoggerMiddleware)

    # Routers
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Health check
    @app.get("/", tags=["Health"])
    async def health():
        return JSONResponse(status_code=200, content={"status": "ok"})

    # Exception handling
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP error: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error", exc_info=True)
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})

    return app


# Entry point
app = create_app()

if __name__ == "__main__":
    uvicorn.run("feed_doctor.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
