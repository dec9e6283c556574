"""
Typed errors raised by the reservation core.

Every failure a caller can see is one of these. Storage errors are caught at
the service boundary and re-raised as InternalFailure, so nothing from
SQLAlchemy leaks into a response body.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from boxoffice.core.logging import get_logger

logger = get_logger(__name__)


class BoxOfficeError(Exception):
    """Base error carrying an HTTP status, a stable code and extra payload."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BOX_OFFICE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.details}


class ValidationError(BoxOfficeError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        payload = dict(details or {})
        if field:
            payload["field"] = field
        super().__init__(message, details=payload)


class NotFoundError(BoxOfficeError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        details = {}
        if isinstance(identifier, (list, tuple)):
            details["missing"] = list(identifier)
        elif identifier is not None:
            message = f"{resource} {identifier} not found"
        super().__init__(message, details=details)


class SeatConflictError(BoxOfficeError):
    """One or more requested seats are booked or locked by another session."""

    status_code = status.HTTP_409_CONFLICT
    code = "SEATS_UNAVAILABLE"

    def __init__(self, unavailable: List[Dict[str, Any]]):
        self.unavailable = unavailable
        super().__init__(
            "Some seats are no longer available",
            details={"unavailable": unavailable},
        )


class LockExpiredError(BoxOfficeError):
    status_code = status.HTTP_409_CONFLICT
    code = "LOCK_EXPIRED"

    def __init__(self, missing_seat_ids: Optional[List[str]] = None):
        details = {"seatIds": missing_seat_ids} if missing_seat_ids else {}
        super().__init__(
            "Lock expired or invalid. Please select seats again.",
            details=details,
        )


class AlreadyConfirmedError(BoxOfficeError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ALREADY_CONFIRMED"

    def __init__(self, booking_id: str):
        super().__init__("Booking already paid", details={"bookingId": booking_id})


class BookingAbandonedError(BoxOfficeError):
    status_code = status.HTTP_409_CONFLICT
    code = "BOOKING_ABANDONED"

    def __init__(self, booking_id: str):
        super().__init__(
            "Booking was abandoned and its seats released",
            details={"bookingId": booking_id},
        )


class PaymentDeclinedError(BoxOfficeError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "PAYMENT_DECLINED"

    def __init__(self, booking_id: str, reason: Optional[str] = None, payment_id: Optional[str] = None):
        details = {"bookingId": booking_id, "retryable": True}
        if reason:
            details["reason"] = reason
        if payment_id:
            details["paymentId"] = payment_id
        super().__init__(
            "Payment declined. Please try again or use a different payment method.",
            details=details,
        )


class InternalFailure(BoxOfficeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_FAILURE"

    def __init__(self, message: str = "Internal failure", details: Optional[Dict] = None):
        super().__init__(message, details=details)


class BookingFailedError(InternalFailure):
    code = "BOOKING_FAILED"

    def __init__(self, message: str = "Failed to create booking"):
        super().__init__(message)


async def box_office_error_handler(request: Request, exc: BoxOfficeError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("request_rejected", code=exc.code, status_code=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors()]
    error = ValidationError("Missing or invalid fields", details={"fields": fields})
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BoxOfficeError, box_office_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
