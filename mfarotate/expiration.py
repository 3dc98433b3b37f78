"""
Decide whether the current temporary credentials are still usable.
"""

from .fields import EXPIRATION_FORMAT


def is_still_valid(expiration, now):
    """Return True if expiration is set and strictly after now."""
    if expiration is None:
        return False
    return expiration > now


def remaining_hours(expiration, now):
    """
    Hours left until expiration.

    Negative once expired; only meaningful when is_still_valid() is True.
    """
    return (expiration - now).total_seconds() / 3600


def describe_remaining(expiration, now):
    """Human-readable validity summary, e.g. for the confirmation prompt."""
    if expiration is None:
        return "no expiration recorded"
    if not is_still_valid(expiration, now):
        return "expired"
    return (
        f"valid until {expiration.strftime(EXPIRATION_FORMAT)} "
        f"(about {remaining_hours(expiration, now):.2f} hours remaining)"
    )
