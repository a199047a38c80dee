import sentry_sdk

from .config import Settings, settings as default_settings


def configure_error_monitoring(config: Settings | None = None) -> bool:
    """Initialise Sentry when a DSN is configured. Returns whether it was enabled."""
    config = config or default_settings
    if not config.sentry_dsn:
        return False
    sentry_sdk.init(dsn=config.sentry_dsn, environment=config.env, traces_sample_rate=0.0)
    return True
