# backend/artspace/core/exceptions.py
"""
Domain-specific exceptions for the Artspace booking core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every booking failure kind is its own class so callers can tell a
conflict from a validation error without parsing messages.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying code and details."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested entity is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the requester lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific booking exceptions


class ResourceNotFoundException(NotFoundException):
    """Raised when a resource id does not resolve in the caller's organization."""

    def __init__(self, resource_id: str):
        super().__init__(
            message="Resource not found or not bookable",
            code="RESOURCE_NOT_FOUND",
            details={"resource_id": resource_id},
        )


class BookingNotFoundException(NotFoundException):
    """Raised when a booking id does not resolve in the caller's organization."""

    def __init__(self, booking_id: str):
        super().__init__(
            message="Booking not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class InvalidTimeRangeException(ValidationException):
    """Raised when a requested interval is malformed or outside operating hours."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_TIME_RANGE", details=details)


class InvalidParticipantCountException(ValidationException):
    """Raised when participant count is below one or above resource capacity."""

    def __init__(self, participant_count: int, capacity: Optional[int] = None):
        if capacity is None:
            message = "Participant count must be at least 1"
        else:
            message = f"Participant count must be between 1 and {capacity}"
        super().__init__(
            message=message,
            code="INVALID_PARTICIPANT_COUNT",
            details={"participant_count": participant_count, "capacity": capacity},
        )


class SlotUnavailableException(ConflictException):
    """Raised when a booking would exceed resource capacity for its interval."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class ResourceBusyException(ConflictException):
    """Raised when another writer holds the resource lock for too long."""

    def __init__(self, resource_id: str):
        super().__init__(
            message="Resource is busy processing another booking, please retry",
            code="RESOURCE_BUSY",
            details={"resource_id": resource_id},
        )


class InvalidStateTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed by the lifecycle."""

    def __init__(
        self,
        booking_id: str,
        current_status: str,
        target_status: str,
        reason: Optional[str] = None,
    ):
        message = f"Booking cannot move from {current_status} to {target_status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code="INVALID_STATE_TRANSITION",
            details={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
                "reason": reason,
            },
        )


class PaymentFailedException(DomainException):
    """Raised when the payment collaborator reports a failed charge."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, booking_id: str, reason: Optional[str] = None):
        super().__init__(
            message="Payment failed; booking remains pending",
            code="PAYMENT_FAILED",
            details={"booking_id": booking_id, "reason": reason},
        )


class PaymentReferenceMismatchException(ConflictException):
    """Raised when a payment outcome names a charge other than the one started for the booking."""

    def __init__(self, booking_id: str):
        super().__init__(
            message="Payment reference does not match the charge started for this booking",
            code="PAYMENT_REFERENCE_MISMATCH",
            details={"booking_id": booking_id},
        )


class PricingConfigurationError(ServiceException):
    """Raised when a resource has no usable default rate."""

    def __init__(self, resource_id: str):
        super().__init__(
            message="Resource has no default rate configured",
            code="PRICING_NOT_CONFIGURED",
            details={"resource_id": resource_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
