"""
Flask web application for ytgrab.

Routes:
    /api/video-info  → POST: metadata + download menu for a YouTube URL
    /api/download    → GET: streams one chosen stream as an attachment
    /api/health      → GET: liveness check
    /<path>          → built frontend (dist/), falling back to index.html

Every /api/* route shares one per-address rate limit.
"""

import os
import logging
from datetime import datetime, timezone

from flask import (
    Flask, request, jsonify, send_from_directory,
    Response, stream_with_context,
)
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from ytgrab import __app_name__, __version__
from ytgrab.clients import resolve_with_fallback
from ytgrab.errors import (
    YtGrabError, InputError, StreamTransportError, describe_failure,
)
from ytgrab.formats import build_video_info
from ytgrab.log import setup_logging
from ytgrab.relay import open_download
from ytgrab.urls import extract_video_id
from config import settings as config


logger = logging.getLogger(__name__)

settings = config.load_settings()

app = Flask(__name__, static_folder=None)
app.config["MAX_CONTENT_LENGTH"] = settings["max_content_length"]

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

limiter = Limiter(get_remote_address, app=app, storage_uri="memory://")
api_limit = limiter.shared_limit(lambda: settings["rate_limit"], scope="api")


def _cookie_status() -> bool:
    """Log whether upstream cookies are configured and return it."""
    has_cookies = config.get_cookies() is not None
    if has_cookies:
        logger.info("Using YouTube cookies for authentication")
    else:
        logger.warning("%s environment variable is missing; using default agent", config.COOKIES_ENV)
    return has_cookies


# ---- API Routes ----

@app.route("/api/health")
@api_limit
def health():
    return jsonify({
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


@app.route("/api/video-info", methods=["POST"])
@api_limit
def video_info():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    url = data.get("url")

    if not url:
        return jsonify({"error": "URL is required"}), 400

    video_id = extract_video_id(url)
    if not video_id:
        return jsonify({"error": "Invalid YouTube URL"}), 400

    has_cookies = _cookie_status()

    try:
        resolved = resolve_with_fallback(video_id, settings=settings)
    except YtGrabError as e:
        logger.error("Error fetching video info for %s: %s", video_id, e)
        return jsonify({
            "error": "Failed to fetch video information",
            "details": describe_failure(str(e), has_cookies),
        }), 500

    return jsonify(build_video_info(resolved, video_id))


def _relay(chunks, video_id: str, itag: str):
    """Yield chunks; a failure after the response has started only ends the stream."""
    try:
        for chunk in chunks:
            yield chunk
    except StreamTransportError as e:
        logger.error("Stream error for %s itag %s: %s", video_id, itag, e)


@app.route("/api/download")
@api_limit
def download():
    video_id = request.args.get("videoId", "").strip()
    itag = request.args.get("itag", "").strip()
    title = request.args.get("title")
    fmt = request.args.get("format")
    client = request.args.get("client")

    if not video_id or not itag:
        return jsonify({"error": "videoId and itag are required"}), 400

    try:
        prepared = open_download(video_id, itag, title=title, fmt=fmt, client=client, settings=settings)
        chunks = prepared["chunks"]
        # Pull the first chunk now so upstream failures can still be reported as JSON
        first = next(chunks, None)
    except InputError as e:
        return jsonify({"error": str(e)}), 400
    except YtGrabError as e:
        logger.error("Download error for %s itag %s: %s", video_id, itag, e)
        return jsonify({"error": "Download failed", "details": str(e)}), 500

    def body():
        if first is not None:
            yield first
        yield from _relay(chunks, video_id, itag)

    return Response(
        stream_with_context(body()),
        mimetype=prepared["mimetype"],
        headers={"Content-Disposition": f'attachment; filename="{prepared["filename"]}"'},
    )


# ---- Errors ----

@app.errorhandler(429)
def rate_limited(e):
    return jsonify({"error": RATE_LIMIT_MESSAGE}), 429


@app.errorhandler(500)
def internal_error(e):
    logger.error("Unhandled error: %r", getattr(e, "original_exception", e))
    return jsonify({"error": "Internal server error"}), 500


# ---- Frontend ----

@app.route("/", defaults={"path": ""})
@app.route("/<path:path>")
def frontend(path):
    if path == "api" or path.startswith("api/"):
        return jsonify({"error": "Not found"}), 404

    dist_dir = os.path.abspath(settings["dist_dir"])
    if path and os.path.isfile(os.path.join(dist_dir, path)):
        return send_from_directory(dist_dir, path)
    if os.path.isfile(os.path.join(dist_dir, "index.html")):
        return send_from_directory(dist_dir, "index.html")
    return jsonify({"error": "Frontend not built"}), 404


# ---- Server ----

def run_web():
    setup_logging(settings["log_level"])
    cookies = "✅ configured" if config.get_cookies() else "❌ no YOUTUBE_COOKIES"
    print(f"\n🌐 {__app_name__} v{__version__} backend running on port {settings['port']}")
    print(f"🖥️  Frontend URL: {settings['frontend_url']}")
    print(f"🍪 YouTube cookies: {cookies}\n")
    app.run(host=settings["host"], port=settings["port"], threaded=True, use_reloader=False)


if __name__ == "__main__":
    run_web()
