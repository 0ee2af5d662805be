"""
Client fallback — tries yt-dlp under several client personas in turn.

YouTube hands different stream sets to different clients, and sometimes
blocks one of them outright. We walk an ordered persona list:

    WEB      → browser headers, yt-dlp "web" player client
    IOS      → yt-dlp "ios" player client, no custom headers
    ANDROID  → yt-dlp "android" player client, no custom headers

For each persona:
    1. resolve the video;
    2. a hard failure is recorded and we move on;
    3. a result with at least one high-quality stream is accepted;
    4. a low-quality-only result is accepted only from the last persona,
       otherwise we move on.

If every persona fails hard, the last error is raised. The loop is strictly
sequential and the persona order is significant.
"""

import logging
from typing import Callable, Optional

from config import settings as config
from ytgrab.errors import YtGrabError, UpstreamAccessError
from ytgrab.extractor import fetch_video


logger = logging.getLogger(__name__)

HIGH_QUALITY_HEIGHT = 720


def is_high_quality(stream: dict) -> bool:
    """A stream with a bitrate and either height >= 720 or video of unknown height."""
    if not stream.get("bitrate"):
        return False
    height = stream.get("height")
    if height:
        return height >= HIGH_QUALITY_HEIGHT
    return bool(stream.get("has_video"))


def has_high_quality(streams: list[dict]) -> bool:
    return any(is_high_quality(s) for s in streams)


def should_accept(high_quality: bool, is_last: bool) -> bool:
    """Decide whether a successful resolution ends the search."""
    return high_quality or is_last


def resolve_with_fallback(
    video_id: str,
    personas: Optional[list[dict]] = None,
    extractor: Callable = fetch_video,
    settings: Optional[dict] = None,
) -> dict:
    """
    Resolve a video, falling back across client personas.

    Args:
        video_id: 11-character YouTube video ID.
        personas: Ordered persona dicts (defaults to CLIENT_PERSONAS).
        extractor: Callable(video_id, persona, settings) → resolved video dict.
        settings: Loaded settings, passed through to the extractor.

    Returns:
        dict: {
            "video": resolved video dict,
            "client": name of the accepted persona,
            "has_high_quality": bool,
            "attempts": [{"client", "outcome", "error"}, ...],
        }

    Raises:
        YtGrabError: the last hard failure when no persona produced a result.
    """
    personas = config.CLIENT_PERSONAS if personas is None else personas
    settings = settings or config.load_settings()
    attempts = []
    last_error: Optional[YtGrabError] = None

    for index, persona in enumerate(personas):
        name = persona["name"]
        is_last = index == len(personas) - 1
        logger.info("Attempting fetch of %s with %s client...", video_id, name)

        try:
            video = extractor(video_id, persona, settings)
        except YtGrabError as e:
            logger.warning("%s client failed: %s", name, e)
            attempts.append({"client": name, "outcome": "error", "error": str(e)})
            last_error = e
            continue

        high_quality = has_high_quality(video["streams"])
        if should_accept(high_quality, is_last):
            if not high_quality:
                logger.warning(
                    "Accepting low quality result for %s from final client %s", video_id, name
                )
            else:
                logger.info("Success with %s client. High quality found.", name)
            attempts.append({"client": name, "outcome": "accepted", "error": None})
            return {
                "video": video,
                "client": name,
                "has_high_quality": high_quality,
                "attempts": attempts,
            }

        logger.info("%s returned only low quality formats. Trying next client...", name)
        attempts.append({"client": name, "outcome": "low_quality", "error": None})
        last_error = UpstreamAccessError("Low quality formats only")

    raise last_error or UpstreamAccessError("All clients failed")
