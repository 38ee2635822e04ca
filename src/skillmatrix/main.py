"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skillmatrix.config import settings
from skillmatrix.exception_handlers import setup_exception_handlers
from skillmatrix.logging_config import setup_logging
from skillmatrix.middleware import RequestContextMiddleware
from skillmatrix.routers import (
    approvals,
    dashboard,
    goals,
    notifications,
    preferences,
    projects,
    ratings,
    reports,
    skills,
    users,
)
from skillmatrix.schemas.common import ErrorResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield


app = FastAPI(
    title="Skill Matrix API",
    description="Backend API for employee skill ratings, approvals and reporting",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware to allow the frontend to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-API-Latency-ms"],
)
app.add_middleware(RequestContextMiddleware)

setup_exception_handlers(app)

# Mount routers
for module in (
    skills,
    ratings,
    approvals,
    users,
    projects,
    goals,
    dashboard,
    reports,
    preferences,
    notifications,
):
    app.include_router(
        module.router,
        prefix="/api",
        responses={
            401: {"model": ErrorResponse},
            403: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
    )
