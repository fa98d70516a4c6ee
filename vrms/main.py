"""VRMS FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vrms.api.customers import router as customers_router
from vrms.api.health import router as health_router
from vrms.api.promotions import router as promotions_router
from vrms.config import settings
from vrms.errors import AppError, ErrorKind

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="VRMS - Vacation Rental Management Service",
    description="Guest promotion claims, identity provisioning and property-scoped CRM conversations",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.kind is ErrorKind.INTERNAL_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    content = AppError(ErrorKind.VALIDATION_ERROR, "Invalid request").to_dict()
    content["error"]["details"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=AppError(ErrorKind.INTERNAL_ERROR, "Internal server error").to_dict(),
    )


app.include_router(health_router, tags=["Health"])
app.include_router(promotions_router, tags=["Promotions"])
app.include_router(customers_router, tags=["Customers"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "VRMS", "version": "0.1.0", "docs": "/docs"}
