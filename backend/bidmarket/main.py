"""Main FastAPI application."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bidmarket.config import settings
from bidmarket.core.exceptions import MarketplaceError
from bidmarket.api import accounts, bid_requests, bids, inbox, events

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="BidMarket API",
    version="1.0.0",
    description="A reverse-auction marketplace where warehouses post bid requests and factories compete to fill them"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    accounts.router,
    prefix=f"{settings.API_V1_PREFIX}/accounts",
    tags=["accounts"]
)
app.include_router(
    bid_requests.router,
    prefix=f"{settings.API_V1_PREFIX}/bid-requests",
    tags=["bid-requests"]
)
app.include_router(
    bids.router,
    prefix=f"{settings.API_V1_PREFIX}/bids",
    tags=["bids"]
)
app.include_router(
    inbox.router,
    prefix=f"{settings.API_V1_PREFIX}/inbox",
    tags=["inbox"]
)
app.include_router(
    events.router,
    prefix=f"{settings.API_V1_PREFIX}",
    tags=["events"]
)


@app.on_event("startup")
async def startup():
    """Application startup tasks."""
    logger.info("BidMarket API starting...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("API Docs: http://localhost:8000/docs")


@app.on_event("shutdown")
async def shutdown():
    """Application shutdown tasks."""
    logger.info("BidMarket API shutting down...")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "BidMarket API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
    }


@app.exception_handler(MarketplaceError)
async def marketplace_exception_handler(request: Request, exc: MarketplaceError):
    """Map domain errors to their HTTP status with the standard error envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code} {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail()}
    )


# Global exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )
