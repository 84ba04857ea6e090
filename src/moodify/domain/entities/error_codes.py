"""Media service error codes - standardized error classification.

Hey future me - this module standardizes HOW we classify backend failures!

Every adapter (Spotify, YouTube, ...) fails in its own dialect. The core only
cares about two questions:
1. Is it worth trying again on the next natural cycle (poll tick, user tap)?
2. What do we show the user instead of a raw stack trace?

NON-RETRYABLE (user has to do something):
- NOT_AUTHENTICATED: No token in the vault, user must connect the service
- AUTH_EXPIRED: Refresh failed, user must reconnect
- PREMIUM_REQUIRED: Backend refuses playback control for this account
- TRACK_NOT_FOUND: Item id unknown to the backend

RETRYABLE (transient - next tick/tap may succeed):
- TIMEOUT: Call exceeded the configured network timeout
- NETWORK_ERROR: Backend unreachable
- NO_DEVICE: No active playback device right now
- RATE_LIMITED: Backend asked us to slow down
- UNKNOWN: Unexpected error (assume transient)

There is deliberately NO retry helper here: the core never retries internally,
it only reports. The next poll tick or user action is the retry.
"""

from enum import StrEnum


class ServiceErrorCode(StrEnum):
    """Standardized error codes for media service failures."""

    # Non-retryable errors
    NOT_AUTHENTICATED = "not_authenticated"
    AUTH_EXPIRED = "auth_expired"
    PREMIUM_REQUIRED = "premium_required"
    TRACK_NOT_FOUND = "track_not_found"

    # Retryable errors
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    NO_DEVICE = "no_device"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


NON_RETRYABLE_ERRORS: frozenset[str] = frozenset(
    {
        ServiceErrorCode.NOT_AUTHENTICATED,
        ServiceErrorCode.AUTH_EXPIRED,
        ServiceErrorCode.PREMIUM_REQUIRED,
        ServiceErrorCode.TRACK_NOT_FOUND,
    }
)

# "{service}" is replaced with the service display name.
_USER_MESSAGES: dict[str, str] = {
    ServiceErrorCode.NOT_AUTHENTICATED: "Please connect your {service} account in Settings.",
    ServiceErrorCode.AUTH_EXPIRED: "{service} session expired. Please reconnect.",
    ServiceErrorCode.PREMIUM_REQUIRED: "{service} Premium is required for playback control.",
    ServiceErrorCode.TRACK_NOT_FOUND: "Track not found on {service}.",
    ServiceErrorCode.TIMEOUT: "Request timed out. Please try again.",
    ServiceErrorCode.NETWORK_ERROR: "Cannot reach {service}. Check your connection.",
    ServiceErrorCode.NO_DEVICE: "No {service} device found. Open {service} and play something.",
    ServiceErrorCode.RATE_LIMITED: "{service} is busy. Try again in a moment.",
    ServiceErrorCode.UNKNOWN: "{service} encountered an error.",
}


def is_retryable_error(error_code: str | None) -> bool:
    """Check if an error code describes a transient failure.

    Unknown/None codes count as retryable (assume transient).

    Args:
        error_code: Error code string (ServiceErrorCode value)

    Returns:
        True if the next natural cycle may succeed
    """
    if error_code is None:
        return True
    return error_code not in NON_RETRYABLE_ERRORS


def get_user_message(error_code: str | None, service_name: str) -> str:
    """Get the user-facing message for an error code.

    Args:
        error_code: Error code string (ServiceErrorCode value)
        service_name: Display name of the failing service ("Spotify")

    Returns:
        Friendly message safe to show in the UI
    """
    template = _USER_MESSAGES.get(error_code or "", _USER_MESSAGES[ServiceErrorCode.UNKNOWN])
    return template.format(service=service_name)
