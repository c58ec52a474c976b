import os

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))


def _optional_int(name):
    value = (os.environ.get(name) or "").strip()
    return int(value) if value else None


UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads"))

# Unset prefixes / limits fall back to the per-class defaults in media.asset_class.
AVATAR_PUBLIC_PREFIX = os.environ.get("AVATAR_PUBLIC_PREFIX")
AVATAR_MAX_BYTES = _optional_int("AVATAR_MAX_BYTES")
GALLERY_PUBLIC_PREFIX = os.environ.get("ESTABLISHMENT_GALLERY_PUBLIC_PREFIX")
GALLERY_MAX_BYTES = _optional_int("ESTABLISHMENT_GALLERY_MAX_BYTES")

# Must leave room for base64 overhead on the largest asset class.
MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 8 * 1024 * 1024))

RATELIMIT_ENABLED = os.environ.get("RATELIMIT_ENABLED", "true").lower() == "true"
RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
UPLOAD_RATE_LIMIT = os.environ.get("UPLOAD_RATE_LIMIT", "30 per minute")

SENTRY_DSN = os.environ.get("SENTRY_DSN", "")
SENTRY_TRACES_SAMPLE_RATE = float(
    os.environ.get("SENTRY_TRACES_SAMPLE_RATE", "0.1")
)
SENTRY_ENVIRONMENT = os.environ.get("SENTRY_ENVIRONMENT", "development")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
