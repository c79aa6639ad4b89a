"""Custom exception types for the parcel lookup."""

from __future__ import annotations

from typing import Optional


class ParcelLookupError(Exception):
    """Raised when a lookup attempt against the portal fails.

    ``stage`` names the lookup stage that was running when the failure
    happened; the orchestrator fills it in when the raising step did not.
    """

    default_message = "Parcel lookup failed."
    retryable = True

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        stage: Optional[str] = None,
        selector: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.stage = stage
        self.selector = selector
        self.url = url
        super().__init__(self.message)

    @property
    def reason(self) -> str:
        return self.message

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.stage:
            context_parts.append(f"stage={self.stage}")
        if self.selector:
            context_parts.append(f"selector={self.selector}")
        if self.url:
            context_parts.append(f"url={self.url}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class SessionLaunchError(ParcelLookupError):
    """Raised when the automated browser cannot be started."""

    default_message = "Failed to launch browser session."


class NavigationTimeoutError(ParcelLookupError):
    """Raised when the portal is unreachable or never reaches network idle."""

    default_message = "Portal did not load."


class SelectorTimeoutError(ParcelLookupError):
    """Raised when an expected portal element does not appear in time."""

    default_message = "Expected element did not appear."


class NoResultsError(ParcelLookupError):
    """Raised when the portal answered but lists no parcels for the location.

    This is a normal outcome rather than an infrastructure fault.
    """

    default_message = "No parcels found for the location."
    retryable = False


class ParseAmbiguityError(ParcelLookupError):
    """Raised by strict district parsing when the panel text has no match."""

    default_message = "District text did not match the expected pattern."
    retryable = False


class DeliveryError(Exception):
    """Raised when the lookup result cannot be emailed."""

    def __init__(self, message: str = "Email delivery failed.", *, transport: Optional[str] = None) -> None:
        self.message = message
        self.transport = transport
        super().__init__(message)

    def __str__(self) -> str:
        if self.transport:
            return f"{self.message} (transport={self.transport})"
        return self.message
