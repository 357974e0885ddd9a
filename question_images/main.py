"""Question Images Service - FastAPI app entry point."""
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from question_images.core.config import get_settings
from question_images.core.errors import AppError
from question_images.core.logging import configure_logging, log_api_request
from question_images.db.base import Base
from question_images.db.session import engine
from question_images.routers import admin, auth, images, questions

configure_logging()
logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("startup_complete", app=settings.app_name)

    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Image attempts, selection and schema migration for exam questions",
    lifespan=lifespan,
)


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message, error_type=type(exc).__name__)
    else:
        logger.info("request_rejected", path=request.url.path, error=exc.message, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"success": False, "error": details or "Invalid request"})


app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    log_api_request(request)

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    log_api_request(request, response, process_time=process_time)
    return response


app.include_router(auth.router)
app.include_router(questions.router)
app.include_router(images.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
