"""
Error taxonomy for ytgrab.

Every failure the web layer reports maps onto one of these classes; the
class carries the HTTP status it is reported with.

    InputError                 → 400, never retried
      FormatNotFoundError      → 400, itag absent from a fresh resolution
    UpstreamAccessError        → 500, upstream refused / failed the request
      UpstreamEmptyResultError → 500, resolution worked but had no streams
    StreamTransportError       → 500, failure while relaying media bytes
"""


class YtGrabError(Exception):
    """Base class for all ytgrab errors."""

    status_code = 500


class InputError(YtGrabError):
    """Missing or invalid URL / identifier supplied by the caller."""

    status_code = 400


class FormatNotFoundError(InputError):
    """The requested itag is not among the video's current streams."""


class UpstreamAccessError(YtGrabError):
    """The extractor could not resolve the video (blocked, rate limited, ...)."""


class UpstreamEmptyResultError(UpstreamAccessError):
    """Resolution succeeded but yielded zero usable streams."""


class StreamTransportError(YtGrabError):
    """Fetching media bytes from upstream failed."""


def describe_failure(message: str, has_cookies: bool) -> str:
    """
    Rewrite a raw upstream error message into user-facing guidance.

    Args:
        message: The error text (usually str() of an UpstreamAccessError).
        has_cookies: Whether YOUTUBE_COOKIES is configured on this server.

    Returns:
        str: A hint for the known failure kinds, or the message unchanged.
    """
    lowered = (message or "").lower()

    # Order matters: a 429 while fetching formats is a rate limit, not a format problem
    if any(x in lowered for x in ["429", "too many requests", "rate limit"]):
        return "YouTube is rate limiting requests from this server. Please try again later."

    if any(x in lowered for x in ["sign in", "sign-in", "login required"]):
        if has_cookies:
            return "YouTube rejected the provided cookies. They may be expired or invalid."
        return (
            "YouTube requires sign-in for this video. "
            "Set the YOUTUBE_COOKIES environment variable on the server."
        )

    if "formats" in lowered:
        if has_cookies:
            return "No playable formats found even with cookies. The server IP might be blocked."
        return "No playable formats found. Please add YOUTUBE_COOKIES to the server environment."

    return message
