from typing import Any


class APIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {"success": False, "error": str(self)}


class InvalidRequestError(APIError):
    """Raised for malformed paths, headers or bodies - maps to HTTP 400."""

    status_code = 400


class UnauthorizedError(APIError):
    """Raised when a bearer secret is missing or wrong - maps to HTTP 401."""

    status_code = 401


class SignatureMismatchError(APIError):
    """Raised when the webhook signature does not match the raw body - maps to HTTP 403."""

    status_code = 403

    def __init__(self, message: str = "Invalid signature - webhook not from Notion"):
        super().__init__(message)


class TenantNotFoundError(APIError):
    """Raised when no configuration is stored for a tenant - maps to HTTP 404."""

    status_code = 404

    def __init__(self, tenant_id: str, *, message: str | None = None):
        super().__init__(message or "User not found")
        self.tenant_id = tenant_id


class UpstreamFetchError(APIError):
    """Raised when page data could not be retrieved from Notion - maps to HTTP 500."""

    status_code = 500

    def __init__(self, message: str = "Failed to retrieve Notion page"):
        super().__init__(message)


class BadGatewayError(APIError):
    """Raised when a third-party download fails - maps to HTTP 502."""

    status_code = 502
