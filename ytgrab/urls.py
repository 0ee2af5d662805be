"""
URL parser — pulls the 11-character video ID out of a YouTube link.

Recognised shapes:
    https://www.youtube.com/watch?v=ID
    https://www.youtube.com/embed/ID
    https://www.youtube.com/v/ID
    https://www.youtube.com/shorts/ID
    https://www.youtube.com/live/ID
    https://youtu.be/ID

Structured parsing runs first; if it fails or finds nothing, a fixed list
of regexes is tried against the raw string. An unrecognised URL gives None.
"""

import re
from typing import Optional
from urllib.parse import urlparse, parse_qs


# Path prefixes on youtube.com whose next segment is the video ID
ID_PATH_PREFIXES = ("embed", "v", "shorts", "live")

# Applied in order to the raw input; first match wins
ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/shorts/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtu\.be/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/v/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/live/)([a-zA-Z0-9_-]{11})"),
]


def _from_parsed_url(url: str) -> Optional[str]:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    segments = [s for s in parsed.path.split("/") if s]

    if host == "youtube.com" or host.endswith(".youtube.com"):
        if parsed.path == "/watch":
            values = parse_qs(parsed.query).get("v")
            return values[0] if values and values[0] else None
        if len(segments) >= 2 and segments[0] in ID_PATH_PREFIXES:
            return segments[1]
    elif host == "youtu.be":
        return segments[0] if segments else None

    return None


def extract_video_id(url) -> Optional[str]:
    """
    Extract a video ID from a YouTube URL.

    Args:
        url: Any user-supplied string.

    Returns:
        The video ID, or None if the input isn't a recognised YouTube URL.
        Never raises for bad input.
    """
    if not isinstance(url, str):
        return None
    url = url.strip()
    if not url:
        return None

    try:
        video_id = _from_parsed_url(url)
        if video_id:
            return video_id
    except ValueError:
        # urlparse rejects things like malformed IPv6 hosts
        pass

    for pattern in ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)

    return None
