import os
import time
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

# Load environment variables as early as possible
load_dotenv()

from .config import settings
from .exceptions import http_exception_handler, validation_exception_handler, create_error_response
from .infrastructure.persistence.mongo.client import mongo
from .middleware import RateLimitMiddleware, SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware, RequestSizeLimitMiddleware
from .routers import auth_router, two_factor_router, user_router
from .utils import utcnow

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

STARTED_AT = time.time()

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    mongo.connect()
    if not mongo.connected and settings.is_production:
        # production must not serve logins without a database
        raise RuntimeError("Database connection is required in production")
    if not settings.TWO_FACTOR_API_KEY:
        logger.error("TWO_FACTOR_API_KEY is not set; OTP endpoints will fail")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")
    mongo.close()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=not settings.is_production,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.allowed_methods_list,
    allow_headers=settings.allowed_headers_list,
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    max_age=86400,
)

app.include_router(two_factor_router.router)
app.include_router(auth_router.router)
app.include_router(user_router.router)


@app.get("/healthz")
def healthz():
    return {
        "status": "healthy" if mongo.connected else "degraded",
        "uptime": round(time.time() - STARTED_AT, 3),
        "timestamp": utcnow().isoformat(),
        "version": settings.APP_VERSION,
        "database": "connected" if mongo.connected else "disconnected",
    }


@app.get("/")
def root():
    return {
        "message": f"{settings.APP_NAME} is running!",
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "endpoints": {
            "health": "/healthz",
            "auth": "/api/auth",
            "2factor": "/api/2factor",
            "user": "/api/user",
        },
    }


@app.exception_handler(404)
async def not_found_handler(request, exc):
    if isinstance(exc, HTTPException) and exc.detail != "Not Found":
        return await http_exception_handler(request, exc)
    return JSONResponse(
        status_code=404,
        content=create_error_response(f"Cannot {request.method} {request.url.path}", 404),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("urbanesta.main:app", host=settings.HOST, port=int(os.environ.get("PORT", settings.PORT)))
