# File: app/observability/sentry.py | Version: 2.0 | Title: Optional Sentry initialization
import logging

import sentry_sdk

from app.core.config import settings

log = logging.getLogger(__name__)


def init_sentry_if_configured() -> bool:
    """Start the Sentry SDK when SENTRY_DSN is set. Returns whether it was started."""
    dsn = (settings.SENTRY_DSN or "").strip()
    if not dsn:
        log.debug("Sentry disabled (no SENTRY_DSN).")
        return False

    traces = float(settings.SENTRY_TRACES_SAMPLE_RATE)
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=traces,
        # Cell values and view configs are user data
        send_default_pii=False,
    )
    log.info("Sentry initialized (traces_sample_rate=%s).", traces)
    return True
