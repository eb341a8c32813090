import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from tabular_fetch import config


def get_sentry_kwargs():
    """
    Returns Sentry configuration kwargs.

    The integration is created fresh each time to ensure proper initialization
    when sentry_sdk.init() is called. Outgoing aiohttp client requests are
    then traced as spans of the current transaction.
    """
    return {
        "dsn": config.SENTRY_DSN,
        "integrations": [AioHttpIntegration()],
        "environment": config.SERVER_NAME or "unknown",
        "traces_sample_rate": config.SENTRY_SAMPLE_RATE or 1.0,
    }


def init_sentry() -> None:
    if config.SENTRY_DSN:
        sentry_sdk.init(**get_sentry_kwargs())
