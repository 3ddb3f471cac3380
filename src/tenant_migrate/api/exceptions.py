"""Checkout platform API exceptions.

Every error carries the tenant the request was scoped to, so a failure reason
copied into a migration report still says which side of the move failed.
"""

from typing import Dict, Optional, Type


class CheckoutAPIError(Exception):
    """Base exception for checkout platform API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        tenant_id: Optional[str] = None,
        response_data: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.tenant_id = tenant_id
        self.response_data = response_data

    def __str__(self) -> str:
        context = []
        if self.status_code is not None:
            context.append(f'HTTP {self.status_code}')
        if self.tenant_id:
            context.append(f'tenant {self.tenant_id}')
        if not context:
            return self.message
        return f'{self.message} ({", ".join(context)})'


class CheckoutAuthenticationError(CheckoutAPIError):
    """API key rejected."""


class CheckoutPermissionError(CheckoutAPIError):
    """Key not allowed to act on the tenant, typically one outside its scope."""


class CheckoutNotFoundError(CheckoutAPIError):
    """Resource or endpoint not found."""


class CheckoutValidationError(CheckoutAPIError):
    """Payload rejected by the platform."""


class CheckoutRateLimitError(CheckoutAPIError):
    """Rate limit exceeded."""


ERRORS_BY_STATUS: Dict[int, Type[CheckoutAPIError]] = {
    401: CheckoutAuthenticationError,
    403: CheckoutPermissionError,
    404: CheckoutNotFoundError,
    422: CheckoutValidationError,
    429: CheckoutRateLimitError,
}


def error_for_status(
    status_code: int,
    message: str,
    tenant_id: Optional[str] = None,
    response_data: Optional[dict] = None,
) -> CheckoutAPIError:
    """Build the exception matching an HTTP error status."""
    error_class = ERRORS_BY_STATUS.get(status_code, CheckoutAPIError)
    return error_class(
        message,
        status_code=status_code,
        tenant_id=tenant_id,
        response_data=response_data,
    )
