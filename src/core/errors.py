from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(code="not_found", message=message, status_code=404)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(code="bad_request", message=message, status_code=400)


class ConfigurationError(AppError):
    """A metric definition that cannot take part in scoring.

    Calculators catch this per metric and leave the metric out of the
    composite instead of failing the whole computation.
    """

    def __init__(self, message: str, metric_key: Optional[str] = None) -> None:
        super().__init__(
            code="configuration_error",
            message=message,
            status_code=422,
            details={"metricKey": metric_key} if metric_key else None,
        )
        self.metric_key = metric_key


class StoreQueryError(AppError):
    def __init__(self, message: str = "Store query failed", table: Optional[str] = None) -> None:
        super().__init__(
            code="store_query_error",
            message=message,
            status_code=502,
            details={"table": table} if table else None,
        )
        self.table = table


class CancellationSignal(Exception):
    """Raised for a computation whose result was superseded by a newer request."""

    def __init__(self, key: str, generation: int) -> None:
        super().__init__(f"Computation for {key} (generation {generation}) was superseded")
        self.key = key
        self.generation = generation


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details)
    )
    return JSONResponse(status_code=exc.status_code, content=envelope.model_dump())


def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(
            code="validation_error",
            message="Validation error",
            details={"errors": exc.errors()},
        )
    )
    return JSONResponse(status_code=422, content=envelope.model_dump())
