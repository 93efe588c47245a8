from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the machine-readable error code surfaced to callers.
    """

    default_code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    default_code = "VALIDATION_ERROR"


class AuthenticationError(DomainError):
    """Raised when credentials are invalid or a principal cannot be created."""

    default_code = "AUTHENTICATION_FAILED"


class ScopeError(DomainError):
    """Raised when tenant or branch scope cannot be resolved."""

    default_code = "NO_TENANT_ID"


class StoreError(DomainError):
    """Raised by repositories when the backing store rejects a call."""

    NO_ROWS = "NO_ROWS"
    RELATION_MISSING = "RELATION_MISSING"
    DUPLICATE_KEY = "DUPLICATE_KEY"

    default_code = "STORE_ERROR"

    @property
    def is_missing(self) -> bool:
        """True for "no row" and "relation missing", which callers treat as empty."""
        return self.code in (self.NO_ROWS, self.RELATION_MISSING)
