"""
App-wide configuration and settings.

Values come from three layers, later ones winning:
    1. DEFAULTS below
    2. an optional JSON file (ytgrab_settings.json in the working directory)
    3. environment variables (PORT, HOST, YTGRAB_RATE_LIMIT, ...)

Upstream authentication material (YOUTUBE_COOKIES) is read straight from
the environment on every call and never written to the settings file.
"""

import os
import json

SETTINGS_FILE = "ytgrab_settings.json"

# Defaults
DEFAULTS = {
    "host": "0.0.0.0",
    "port": 3001,
    "rate_limit": "100 per 15 minutes",  # per client address, shared by /api/*
    "max_content_length": 10 * 1024 * 1024,
    "dist_dir": os.path.join(os.path.dirname(__file__), "..", "dist"),
    "download_dir": "downloads",
    "download_chunk_size": 10 * 1024 * 1024,  # bytes per upstream range request
    "request_timeout": 30,
    "force_ipv4": True,
    "lang": "en",
    "log_level": "INFO",
    "frontend_url": "http://localhost:5173",
}

# Environment variable → (settings key, type)
ENV_OVERRIDES = {
    "PORT": ("port", int),
    "HOST": ("host", str),
    "YTGRAB_RATE_LIMIT": ("rate_limit", str),
    "YTGRAB_LOG_LEVEL": ("log_level", str),
    "YTGRAB_DIST_DIR": ("dist_dir", str),
    "FRONTEND_URL": ("frontend_url", str),
}

# Browser-like headers sent by the WEB persona and by the download relay
WEB_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Referer": "https://www.youtube.com/",
    "Accept-Language": "en-US,en;q=0.9",
}

# Client personas tried in order by the fallback strategy.
# Mobile personas carry no custom headers so yt-dlp sets the matching User-Agent.
CLIENT_PERSONAS = [
    {"name": "WEB", "player_client": "web", "headers": WEB_HEADERS},
    {"name": "IOS", "player_client": "ios", "headers": None},
    {"name": "ANDROID", "player_client": "android", "headers": None},
]

COOKIES_ENV = "YOUTUBE_COOKIES"


def load_settings() -> dict:
    """Load settings from disk and the environment, falling back to defaults."""
    settings = DEFAULTS.copy()
    if os.path.exists(SETTINGS_FILE):
        try:
            with open(SETTINGS_FILE, "r") as f:
                saved = json.load(f)
            settings.update(saved)
        except (json.JSONDecodeError, IOError):
            pass

    for env_name, (key, cast) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw:
            try:
                settings[key] = cast(raw)
            except ValueError:
                pass
    return settings


def get_cookies():
    """Raw YOUTUBE_COOKIES value, or None when unset or blank."""
    raw = os.environ.get(COOKIES_ENV, "").strip()
    return raw or None


def get_persona(name: str) -> dict:
    """Look up a persona by name (case-insensitive)."""
    for persona in CLIENT_PERSONAS:
        if persona["name"].lower() == name.lower():
            return persona
    raise KeyError(f"Unknown client persona: {name}")
