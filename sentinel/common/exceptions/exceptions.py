# sentinel/common/exceptions/exceptions.py
# =============================================================================
# Custom exceptions for Sentinel
# =============================================================================


class SentinelException(Exception):
    """Base exception for Sentinel"""
    pass


class ValidationError(SentinelException):
    """Raised when input is malformed (missing field, invalid enum value)"""
    pass


class NotFoundError(SentinelException):
    """Raised when a resource is not found"""
    pass


# Alias for compatibility
ResourceNotFoundError = NotFoundError


class ForbiddenError(SentinelException):
    """Raised when an authenticated caller is not allowed to act on a resource"""
    pass


class AuthError(SentinelException):
    """Raised when a request or connection is not authenticated"""
    pass


class DomainError(SentinelException):
    """Raised for domain-specific errors"""
    pass


class InfrastructureError(SentinelException):
    """Raised for infrastructure errors"""
    pass


class ProviderError(InfrastructureError):
    """Raised when a push provider is unreachable or misconfigured"""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
