import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from sliceurl.config import settings
from sliceurl.database import Base, engine
from sliceurl.errors import ApiError, RateLimitExceededError
from sliceurl.json_utils import api_error, api_response
from sliceurl.logging_config import configure_logging
from sliceurl.routers import auth, links

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управляет жизненным циклом приложения"""
    configure_logging()
    logger.info("Starting %s", settings.APP_NAME)

    Base.metadata.create_all(bind=engine)

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="API сервиса сокращения ссылок с аккаунтами пользователей",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(links.router)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if isinstance(exc, RateLimitExceededError):
        return api_error(
            exc.status_code,
            exc.message,
            headers={"Retry-After": str(exc.window)},
            rateLimit=exc.rate_limit
        )
    return api_error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request.") if errors else "Invalid request."
    return api_error(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return api_error(exc.status_code, "Route not found.")
    return api_error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    if request.url.path.startswith(("/links", "/auth", "/users")):
        logger.info(
            "%s %s - %s - %.4fs",
            request.method, request.url.path, response.status_code, process_time
        )

    return response


@app.get("/", tags=["root"])
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "docs_url": "/docs",
        "version": "1.0.0"
    }


@app.get("/health", tags=["root"])
async def health():
    return api_response(status.HTTP_200_OK, "Ok")


if __name__ == "__main__":
    uvicorn.run("sliceurl.main:app", host="0.0.0.0", port=8000, reload=True)
