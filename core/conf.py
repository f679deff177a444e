from django.conf import settings

DEFAULTS = {
    "DEFAULT_CURRENCY": "RUB",
    "DEFAULT_COUNTRY": "Россия",
    "MIN_DESCRIPTION_LENGTH": 20,
    "MAX_UPLOAD_FILES": 10,
    "MAX_UPLOAD_BYTES": 10 * 1024 * 1024,
    "MODERATION_CLEAN_THRESHOLD": 30,
    "MODERATION_STRICT_CLEAN_THRESHOLD": 10,
    "MODERATION_REJECT_THRESHOLD": 70,
    "MODERATION_CACHE_SECONDS": 300,
}


def market_setting(name):
    """Read a key from settings.MARKETPLACE, falling back to DEFAULTS."""
    overrides = getattr(settings, "MARKETPLACE", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
