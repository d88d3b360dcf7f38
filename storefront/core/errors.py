from __future__ import annotations


class StorefrontError(Exception):
    """Base class of the domain errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Raised when a request is well-formed but violates a business rule."""

    status_code = 400


class NotFoundError(StorefrontError):
    """Raised when an order, product or cart line does not exist for the caller."""

    status_code = 404


class ForbiddenError(StorefrontError):
    """Raised when the caller may see an order but not make the requested change."""

    status_code = 403


class InvalidTransitionError(StorefrontError):
    """Raised when an order status change is not allowed by the lifecycle."""

    status_code = 409

    def __init__(self, current, requested) -> None:
        current = getattr(current, "value", current)
        requested = getattr(requested, "value", requested)
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested
