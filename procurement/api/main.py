import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from procurement import __version__
from procurement.core.config import get_settings
from procurement.core.errors import InvalidInputError, ProcurementError
from procurement.core.logger import setup_logger
from procurement.api.middleware import RequestLogMiddleware, SecurityHeadersMiddleware
from procurement.api.routers import (
    approvals,
    events,
    health,
    invoices,
    notifications,
    proposals,
    rfp,
    service_orders,
    suppliers,
    tenders,
)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logger(
        "procurement",
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.log_to_file,
    )
    logger.info("%s %s starting", settings.app_name, __version__)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Tenders, supplier proposals and token-based approvals",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=not settings.debug,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLogMiddleware)


# Error responses
@app.exception_handler(ProcurementError)
async def procurement_error_handler(request: Request, exc: ProcurementError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = InvalidInputError.from_validation_errors(exc.errors(), "Invalid input")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    kind = {404: "not_found", 405: "method_not_allowed"}.get(exc.status_code, "http_error")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": kind, "detail": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal", "detail": "Internal server error"},
    )


# Include routers
app.include_router(health.router)
app.include_router(approvals.router, prefix="/api")
app.include_router(tenders.router, prefix="/api")
app.include_router(proposals.router, prefix="/api")
app.include_router(suppliers.router, prefix="/api")
app.include_router(service_orders.router, prefix="/api")
app.include_router(invoices.router, prefix="/api")
app.include_router(rfp.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(events.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
