# rental_payments/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from rental_payments.config import ALLOWED_ORIGINS
from rental_payments.errors import RentalPaymentsError
from rental_payments.logging_config import setup_logging
from rental_payments.middleware import RequestIDMiddleware
from rental_payments.routes.health import router as health_router
from rental_payments.routes.metrics import router as metrics_router
from rental_payments.routes.properties import router as properties_router
from rental_payments.routes.stripe_accounts import router as stripe_accounts_router
from rental_payments.schemas.errors import ErrorMessage, ErrorResponse
from rental_payments.services.duplicate_keys import (
    conflict_signal_from_integrity_error,
    translate_duplicate_key_error,
)

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Rental Payments API",
    description="API for managing properties, spots and their Stripe payment accounts",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(properties_router, prefix="/api/v1", tags=["Properties"])
app.include_router(stripe_accounts_router, prefix="/api/v1", tags=["Stripe Accounts"])


def _error_json(request: Request, body: ErrorResponse) -> JSONResponse:
    body.request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=body.status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@app.exception_handler(RentalPaymentsError)
def handle_domain_error(request: Request, exc: RentalPaymentsError) -> JSONResponse:
    """Render domain errors as {statusCode, message, errorMessages}."""
    error_messages = [ErrorMessage(path=exc.path or "", message=exc.message)]
    if exc.status_code >= 500:
        logger.error("request_failed", error_type=type(exc).__name__, error=exc.message)
    else:
        logger.info("request_rejected", error_type=type(exc).__name__, status=exc.status_code)

    return _error_json(
        request,
        ErrorResponse(
            status_code=exc.status_code,
            message=exc.message,
            error_messages=error_messages,
        ),
    )


@app.exception_handler(IntegrityError)
def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    """Translate storage uniqueness violations into 409 responses."""
    signal = conflict_signal_from_integrity_error(exc)
    body = translate_duplicate_key_error(signal)
    if body.status_code >= 500:
        logger.error("integrity_error", code=signal.code, error=str(exc.orig))
    else:
        logger.info("duplicate_key_rejected", field=signal.field)
    return _error_json(request, body)
