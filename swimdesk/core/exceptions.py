# swimdesk/core/exceptions.py
"""
Domain-specific exceptions for SwimDesk.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
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
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when a required field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested entity id is absent."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"WWW-Authenticate": "Bearer"}
        return exc


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

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


# Specific business exceptions


class SessionFullException(ConflictException):
    """Raised when enrolling into a session that has reached capacity."""

    def __init__(self, session_id: str, capacity: int):
        super().__init__(
            message="This session is full",
            code="SESSION_FULL",
            details={"session_id": session_id, "capacity": capacity},
        )


class BlockedTimeException(ConflictException):
    """Raised when a session would fall inside an instructor blockout."""

    def __init__(self, instructor_id: str, blockout_id: str, date: str, window: str, reason: str = ""):
        super().__init__(
            message="Instructor has blocked out this time",
            code="BLOCKED_TIME",
            details={
                "instructor_id": instructor_id,
                "blockout_id": blockout_id,
                "date": date,
                "window": window,
                "reason": reason,
            },
        )


class UnavailableWarning(BusinessRuleException):
    """
    Raised when a session falls outside the instructor's weekly availability.

    Non-fatal: the caller may confirm and retry with the override flag set.
    """

    def __init__(self, instructor_id: str, date: str, window: str):
        super().__init__(
            message="Instructor is not marked as available at this time. Schedule anyway?",
            code="INSTRUCTOR_UNAVAILABLE",
            details={
                "instructor_id": instructor_id,
                "date": date,
                "window": window,
                "override_field": "overrideUnavailable",
            },
        )


class InsufficientCreditsException(BusinessRuleException):
    """Raised when a credit debit would take a balance below zero."""

    def __init__(self, user_id: str, balance: int, requested: int = 1):
        super().__init__(
            message="Not enough lesson credits. Purchase a package or book as a drop-in.",
            code="INSUFFICIENT_CREDITS",
            details={"user_id": user_id, "balance": balance, "requested": requested},
        )


class MaintenanceModeException(BusinessRuleException):
    """Raised when bookings are attempted while maintenance mode is on."""

    def __init__(self, contact_email: str = ""):
        super().__init__(
            message="Bookings are temporarily disabled for maintenance",
            code="MAINTENANCE_MODE",
            details={"contact_email": contact_email},
        )


class InvalidWizardTransitionException(BusinessRuleException):
    """Raised when a booking wizard action does not apply to the current step."""

    def __init__(self, action: str, step: str):
        super().__init__(
            message=f"Cannot {action} while the booking is at step {step}",
            code="INVALID_WIZARD_TRANSITION",
            details={"action": action, "step": step},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    storage write failures.
    """
