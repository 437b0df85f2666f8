"""
Rate limiting configuration.

Applies per-blueprint limits using Flask-Limiter. The Limiter instance is
created in devicelab/__init__.py with no default limits; this module limits
the write methods of each API blueprint. Reads are never throttled.

Usage:
    from devicelab.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_METHODS = ["post", "put", "patch", "delete"]


def init_rate_limits(app, limiter):
    """
    Apply write limits to API blueprints.

    Limits (per remote IP, from config):
        - POST /api/upload-app:             RATELIMIT_UPLOAD      (20/minute)
        - Catalog / session writes:         RATELIMIT_API_WRITES  (120/minute)
        - GETs, downloads, health checks:   unlimited

    Skipped entirely when RATELIMIT_ENABLED is false (TestingConfig).
    """
    if not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled (RATELIMIT_ENABLED=False)")
        return

    upload_limit = app.config.get("RATELIMIT_UPLOAD", "20/minute")
    write_limit = app.config.get("RATELIMIT_API_WRITES", "120/minute")

    bp = app.blueprints.get("uploads")
    if bp:
        limiter.limit(upload_limit, methods=["post"])(bp)

    for bp_name in ("catalog", "sessions"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(write_limit, methods=WRITE_METHODS)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: upload=%s writes=%s", upload_limit, write_limit)
