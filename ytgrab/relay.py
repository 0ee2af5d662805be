"""
Download relay — streams one chosen stream's bytes back to the caller.

The video is resolved again (the menu call's result is never reused, so
stale itags are caught here), the stream matching the requested itag is
picked, and its bytes are fetched from YouTube's CDN in ranged chunks and
yielded as they arrive. Nothing is transcoded: asking for "mp3" only
changes the content type and file extension.

Why ranged chunks?
    The CDN throttles long single requests, so we ask for
    download_chunk_size bytes at a time, like yt-dlp does for YouTube.
    A server that ignores Range and answers 200 is streamed once in full.
"""

import re
import logging
from typing import Callable, Iterator, Optional

import requests

from config import settings as config
from ytgrab.errors import FormatNotFoundError, InputError, StreamTransportError
from ytgrab.extractor import fetch_video


logger = logging.getLogger(__name__)

MIME_TYPES = {
    "mp3": "audio/mpeg",
    "webm": "video/webm",
}
DEFAULT_MIME_TYPE = "video/mp4"

READ_BLOCK_SIZE = 64 * 1024


def content_type_for(fmt: Optional[str]) -> str:
    """Content type for the requested output format."""
    return MIME_TYPES.get(fmt or "", DEFAULT_MIME_TYPE)


def attachment_filename(title: Optional[str], fmt: Optional[str]) -> str:
    """Build a safe attachment name: anything but letters, digits, '.' and '-' becomes '_'."""
    name = f"{title or 'video'}.{fmt or 'mp4'}"
    return re.sub(r"[^a-zA-Z0-9.-]", "_", name)


def find_stream(streams: list[dict], itag) -> Optional[dict]:
    itag = str(itag)
    for stream in streams:
        if stream["itag"] == itag:
            return stream
    return None


def iter_stream_bytes(
    stream: dict,
    chunk_size: int,
    timeout: float = 30,
    session: Optional[requests.Session] = None,
) -> Iterator[bytes]:
    """
    Yield a stream's bytes using HTTP range requests.

    Raises:
        StreamTransportError: on any network or HTTP failure.
    """
    url = stream.get("url")
    if not url:
        raise StreamTransportError(f"Stream {stream.get('itag')} has no URL")

    session = session or requests.Session()
    headers = dict(stream.get("http_headers") or {})
    start = 0

    # The end of the stream is a 416 or a short read, never the reported filesize
    while True:
        end = start + chunk_size - 1

        try:
            resp = session.get(
                url,
                headers={**headers, "Range": f"bytes={start}-{end}"},
                stream=True,
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise StreamTransportError(str(e)) from e

        with resp:
            # Asked past the end of the stream
            if resp.status_code == 416:
                return
            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                raise StreamTransportError(str(e)) from e

            received = 0
            try:
                for block in resp.iter_content(chunk_size=READ_BLOCK_SIZE):
                    if block:
                        received += len(block)
                        yield block
            except requests.RequestException as e:
                raise StreamTransportError(str(e)) from e

            if resp.status_code != 206:
                return

        if received < end - start + 1:
            return
        start = end + 1


def open_download(
    video_id: str,
    itag,
    title: Optional[str] = None,
    fmt: Optional[str] = None,
    client: Optional[str] = None,
    extractor: Callable = fetch_video,
    session: Optional[requests.Session] = None,
    settings: Optional[dict] = None,
) -> dict:
    """
    Re-resolve a video and prepare the byte stream for one itag.

    Args:
        video_id: 11-character YouTube video ID.
        itag: Stream key picked from the format menu.
        title: Used for the attachment filename.
        fmt: Requested output format ("mp4", "webm", "mp3").
        client: Persona name to resolve with (defaults to the first persona).
        extractor: Callable(video_id, persona, settings) → resolved video dict.
        session: requests session used for the byte transfer.
        settings: Loaded settings.

    Returns:
        dict: {"stream", "mimetype", "filename", "chunks"} where "chunks"
        is a lazy generator; no bytes are fetched until it is iterated.

    Raises:
        UpstreamAccessError: the re-resolution failed.
        FormatNotFoundError: itag is not among the video's current streams.
    """
    settings = settings or config.load_settings()
    try:
        persona = config.get_persona(client) if client else config.CLIENT_PERSONAS[0]
    except KeyError as e:
        raise InputError(e.args[0]) from e

    video = extractor(video_id, persona, settings)
    stream = find_stream(video["streams"], itag)
    if stream is None:
        raise FormatNotFoundError("Invalid format selected")

    logger.info(
        "Starting download for videoId: %s, itag: %s, format: %s, quality: %s",
        video_id, stream["itag"], fmt or stream["container"], stream.get("quality_label") or "N/A",
    )

    return {
        "stream": stream,
        "mimetype": content_type_for(fmt),
        "filename": attachment_filename(title, fmt),
        "chunks": iter_stream_bytes(
            stream,
            chunk_size=settings["download_chunk_size"],
            timeout=settings["request_timeout"],
            session=session,
        ),
    }
