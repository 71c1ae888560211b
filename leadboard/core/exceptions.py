"""Custom exception types for domain and API layers."""
from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base app exception."""


class ConfigurationError(AppError):
    """Required configuration is missing or invalid."""


class BackendError(AppError):
    """A backend call failed. Carries the calling context and the backend's message."""

    def __init__(self, context: str, backend_message: Optional[str] = None):
        self.context = context
        self.backend_message = backend_message or "Unknown error"
        super().__init__(f"{context}: {self.backend_message}")


class RealtimeError(AppError):
    """Realtime channel could not be joined or its transport failed."""


class SessionNotFoundError(AppError):
    """No mounted page session with the requested id."""
