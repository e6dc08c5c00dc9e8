"""Domain exceptions.

The error taxonomy shared by the product store, the image lifecycle manager
and the catalog service. Callers tell the families apart to decide whether to
retry (infrastructure), answer 404 (not found) or answer 400 (validation).
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Caller Input Errors
# ============================================================================


class ValidationError(CatalogError):
    """Raised when caller input breaks a field rule."""

    def __init__(self, field: str | None, reason: str) -> None:
        """Initialize validation error.

        Args:
            field: Name of the offending field, if any.
            reason: Human-readable reason.
        """
        super().__init__(reason, details={"field": field, "reason": reason})
        self.field = field
        self.reason = reason


class ImageValidationError(ValidationError):
    """Raised when uploaded bytes are not an acceptable image."""

    def __init__(self, reason: str) -> None:
        super().__init__("image", reason)


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(CatalogError):
    """Base class for missing-entity errors."""

    pass


class ProductNotFoundError(NotFoundError):
    """Raised when a product id does not exist."""

    def __init__(self, product_id: str) -> None:
        """Initialize product not found error.

        Args:
            product_id: The id that was looked up.
        """
        super().__init__(
            f"Product not found: {product_id}",
            details={"product_id": product_id},
        )
        self.product_id = product_id


class DuplicateProductIdError(CatalogError):
    """Raised when an insert collides with an existing primary key."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Product id already exists: {product_id}",
            details={"product_id": product_id},
        )
        self.product_id = product_id


# ============================================================================
# Infrastructure Errors
# ============================================================================


class InfrastructureError(CatalogError):
    """Raised when a backing store is unreachable or misbehaves.

    The message is logged; callers only ever see a generic one.
    """

    pass


class InfrastructureTimeoutError(InfrastructureError):
    """Raised when a store operation exceeds its time bound."""

    def __init__(self, operation: str, timeout: float) -> None:
        """Initialize timeout error.

        Args:
            operation: Name of the operation that timed out.
            timeout: Bound in seconds.
        """
        super().__init__(
            f"Operation '{operation}' timed out after {timeout}s",
            details={"operation": operation, "timeout": timeout},
        )
        self.operation = operation
        self.timeout = timeout


class DatabaseUnavailableError(InfrastructureError):
    """Raised when the database cannot be reached after all attempts."""

    def __init__(self, attempts: int, last_error: str) -> None:
        super().__init__(
            f"Database unavailable after {attempts} attempts: {last_error}",
            details={"attempts": attempts, "last_error": last_error},
        )


class ImageStorageError(InfrastructureError):
    """Raised when the object store rejects or fails a write or delete."""

    pass


class MalformedRecordError(InfrastructureError):
    """Raised when a stored row cannot be turned into a Product."""

    def __init__(self, product_id: str | None, reason: str) -> None:
        super().__init__(
            f"Malformed product record {product_id}: {reason}",
            details={"product_id": product_id, "reason": reason},
        )


# ============================================================================
# Authentication Errors
# ============================================================================


class AuthenticationError(CatalogError):
    """Raised when admin credentials or session tokens are rejected."""

    def __init__(self, message: str, error_code: str = "UNAUTHORIZED") -> None:
        super().__init__(message, details={"error_code": error_code})
        self.error_code = error_code
