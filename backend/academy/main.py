from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from academy.api.routes import (
    auth,
    batches,
    content,
    courses,
    family,
    fees,
    health,
    inquiries,
    locations,
    notifications,
    scheduling,
    users,
)
from academy.core.config import get_settings
from academy.core.exceptions import AppError
from academy.core.middleware import RequestSizeLimitMiddleware
from academy.db.bootstrap import run_startup_bootstrap

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    run_startup_bootstrap()
    yield


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(users.router, prefix=settings.api_prefix, tags=["users"])
app.include_router(courses.router, prefix=settings.api_prefix, tags=["courses"])
app.include_router(locations.router, prefix=settings.api_prefix, tags=["locations"])
app.include_router(batches.router, prefix=settings.api_prefix, tags=["batches"])
app.include_router(scheduling.router, prefix=settings.api_prefix, tags=["scheduling"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(content.router, prefix=settings.api_prefix, tags=["content"])
app.include_router(fees.router, prefix=settings.api_prefix, tags=["fees"])
app.include_router(family.router, prefix=settings.api_prefix, tags=["family"])
app.include_router(inquiries.router, prefix=settings.api_prefix, tags=["inquiries"])
