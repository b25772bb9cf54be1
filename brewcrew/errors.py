"""Domain-specific exceptions for the discovery pipeline."""
from __future__ import annotations

from typing import Optional


class PlacesError(Exception):
    """Base exception for Places lookups."""
    pass


class MissingCredential(PlacesError):
    """Raised when no Places API key is configured."""

    def __init__(self, message: str = "Google Places API key is missing") -> None:
        super().__init__(message)


class InvalidResponse(PlacesError):
    """Raised on transport failure, non-2xx status or an unparseable body."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderError(PlacesError):
    """Raised when the provider status is neither OK nor ZERO_RESULTS."""

    def __init__(self, status: str, message: Optional[str] = None) -> None:
        text = f"Google Places API error: {status}"
        if message:
            text = f"{text} ({message})"
        super().__init__(text)
        self.status = status


class DiscoveryInProgress(RuntimeError):
    """Raised when a discovery call overlaps one of the same mode."""
    pass


def user_message(exc: BaseException) -> str:
    """Render an exception as the message shown to the user."""
    if isinstance(exc, MissingCredential):
        return f"{exc}. Set GOOGLE_PLACES_API_KEY in the environment or .env"
    if isinstance(exc, InvalidResponse) and exc.status_code is not None:
        return f"HTTP error {exc.status_code}: {_http_status_hint(exc.status_code)}"
    return str(exc)


def _http_status_hint(status_code: int) -> str:
    if status_code == 401:
        return "Unauthorized - check API key"
    if status_code == 403:
        return "Forbidden - API key may be invalid or missing"
    if status_code == 429:
        return "Rate limit exceeded"
    if 500 <= status_code <= 599:
        return "Server error"
    return "Unknown error"
