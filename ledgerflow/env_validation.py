import os
import logging
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

# Mandatory environment variables for production
REQUIRED_PRODUCTION_ENV_VARS = [
    "SECRET_KEY",
    "DATABASE_URL",
    "CRON_API_KEY",
]

MIN_SECRET_KEY_LENGTH = 50
MIN_CRON_KEY_LENGTH = 32


def validate_env():
    """
    Validate critical environment variables before settings are built.
    Production refuses to start without them; development only warns.
    """
    is_production = os.getenv("PRODUCTION", "false").lower() == "true"

    secret_key = os.getenv("SECRET_KEY")
    if not secret_key:
        if is_production:
            raise ImproperlyConfigured("CRITICAL: SECRET_KEY is required in production.")
        logger.warning("SECRET_KEY not set, using insecure default for development.")

    if not os.getenv("CRON_API_KEY") and not is_production:
        logger.warning("CRON_API_KEY not set, the recurring trigger endpoint will answer 503.")

    if is_production:
        missing = [var for var in REQUIRED_PRODUCTION_ENV_VARS if not os.getenv(var)]
        if missing:
            error_msg = f"CRITICAL: Missing required environment variables in production: {', '.join(missing)}"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

        if secret_key.startswith("django-insecure") or len(secret_key) < MIN_SECRET_KEY_LENGTH:
            error_msg = "CRITICAL: SECRET_KEY must be a long, secure string in production"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

        if len(os.getenv("CRON_API_KEY", "")) < MIN_CRON_KEY_LENGTH:
            error_msg = "CRITICAL: CRON_API_KEY must be a long, random string in production"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

    logger.info("Environment validation passed successfully")
