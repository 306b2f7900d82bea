"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from estatehub.config import settings
from estatehub.database import (
    AsyncSessionLocal,
    close_db_connection,
    create_tables,
    test_database_connection,
)
from estatehub.routers import api_routers, health_router
from estatehub.utils.exceptions import APIException
from estatehub.services.auth import AuthService
from estatehub.services.error_handler import ErrorHandlerService
from estatehub.middleware.performance import PerformanceMonitoringMiddleware

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if not await test_database_connection():
        logger.error("Failed to connect to database on startup")

    # SQLite has no migration step, so the schema is created in place
    if settings.is_sqlite:
        await create_tables()

    if settings.seed_demo_users:
        async with AsyncSessionLocal() as session:
            await AuthService(session).seed_demo_users()

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    A student housing marketplace connecting students, landlords and agents.

    ## Features

    * **Listings**: Landlords publish properties; students search, save and view them
    * **Agent representation**: Agents request to represent listings, landlords invite agents
    * **Showings and bookings**: Students schedule viewings and book units
    * **Leads**: Inquiries with message threads and a lead board for landlords and agents
    * **Payments**: Simulated booking payments with agent commission tracking
    * **Dashboards**: One role-specific dashboard per user

    ## Authentication

    Use the `/api/v1/auth/login` endpoint to obtain a JWT token,
    then include it in the Authorization header as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Signup, login and token management"},
        {"name": "Properties", "description": "Listing management and search"},
        {"name": "Agent Requests", "description": "Representation requests between agents and landlords"},
        {"name": "Agents", "description": "Agent discovery, invitations and performance"},
        {"name": "Showings", "description": "Property viewing appointments"},
        {"name": "Bookings", "description": "Unit reservations"},
        {"name": "Inquiries", "description": "Inquiries, message threads and the lead board"},
        {"name": "Applications", "description": "Rental applications"},
        {"name": "Wishlist", "description": "Saved and recently viewed properties"},
        {"name": "Payments", "description": "Booking payments, commissions and earnings"},
        {"name": "Dashboard", "description": "Role-specific dashboard summaries"},
        {"name": "Admin", "description": "User administration"},
        {"name": "Health", "description": "System health and monitoring endpoints"},
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)

app.add_middleware(
    PerformanceMonitoringMiddleware,
    slow_request_threshold=settings.slow_request_threshold,
    enable_detailed_logging=settings.log_requests,
)

for api_router in api_routers:
    app.include_router(api_router, prefix=settings.api_v1_prefix)
app.include_router(health_router)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors with appropriate error responses."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "estatehub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
