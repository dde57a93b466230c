import logging
from typing import Optional

from backend.webhook.errors import ConfigurationError, Unauthorized

logger = logging.getLogger(__name__)


def validate_secret(provided: Optional[str], expected: Optional[str]) -> None:
    """
    Plain equality check of the shared webhook secret.

    Raises:
        ConfigurationError: no secret configured on our side
        Unauthorized: secret absent from the request or different
    """
    if not expected:
        logger.error("WEBHOOK_SECRET is not configured; rejecting webhook")
        raise ConfigurationError("Webhook secret is not configured on the server")
    if provided is None or provided != expected:
        logger.warning("Webhook rejected: secret missing or invalid")
        raise Unauthorized()
    logger.info("Webhook secret validated")
