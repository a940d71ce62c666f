"""
Sentry configuration for error tracking.

Captures unhandled exceptions with login context.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from playerauth.config import settings
from playerauth.logging_config import get_logger

log = get_logger(component="sentry")

# Keys scrubbed from request data before an event leaves the process
SENSITIVE_KEYS = {"code", "hash", "identity_hash", "access_token", "client_secret"}


def configure_sentry():
    """
    Initialize Sentry with FastAPI and SQLAlchemy integrations.

    Requires SENTRY_DSN environment variable to be set.
    """
    dsn = settings.SENTRY_DSN

    if not dsn:
        log.info("sentry_disabled", reason="SENTRY_DSN not set")
        return

    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        before_send=lambda event, hint: scrub_event(event, hint),
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )

    log.info("sentry_initialized", environment=settings.ENVIRONMENT)


def scrub_event(event, hint):
    """
    Remove OAuth codes, tokens and identity hashes from request bodies.
    """
    request = event.get("request") or {}
    data = request.get("data")
    if isinstance(data, dict):
        request["data"] = {
            key: "[Filtered]" if key in SENSITIVE_KEYS else value
            for key, value in data.items()
        }
    return event


def capture_exception(exc_info=None):
    """
    Capture an exception to Sentry.

    Usage:
        try:
            # some code
        except Exception:
            capture_exception()
    """
    if sentry_sdk.get_client().is_active():
        sentry_sdk.capture_exception(exc_info)
