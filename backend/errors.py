"""Error types raised by the route-weather engine."""

from __future__ import annotations

from typing import Optional


class DataProcessingError(ValueError):
    """Invalid caller input. Carries a machine-readable code and suggestions."""

    def __init__(self, code: str, message: str, suggestions: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestions = list(suggestions or [])

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "suggestions": self.suggestions}


class ProviderError(RuntimeError):
    """Failure reported by an external weather fetch (bad key, quota, network)."""


class QuotaExceeded(ProviderError):
    """Raised by a fetch callable when the upstream provider rate-limits."""


__all__ = ["DataProcessingError", "ProviderError", "QuotaExceeded"]
