from __future__ import annotations

from typing import Any, Optional, Protocol

from .model import Principal

ALREADY_REGISTERED_CODE = "user_already_registered"
_ALREADY_REGISTERED_TEXT = ("already registered", "already exists", "user already registered")


def is_already_registered(error: Exception) -> bool:
    """Recognise the provider's "principal already exists" failure by code or text."""
    if getattr(error, "code", None) == ALREADY_REGISTERED_CODE:
        return True
    text = str(getattr(error, "message", None) or error).lower()
    return any(marker in text for marker in _ALREADY_REGISTERED_TEXT)


class AuthProvider(Protocol):
    """Authentication provider interface.

    Implementations raise AuthenticationError on failure.
    """

    def register(self, email: str, password: str, metadata: Optional[dict[str, Any]] = None) -> Principal:
        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> Principal:
        raise NotImplementedError

    def get_current_principal(self) -> Optional[Principal]:
        raise NotImplementedError

    def update_metadata(self, principal_id: str, metadata: dict[str, Any]) -> Principal:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError
