"""Subscriber tier upgrade.

Subscribing sets a long-lived cookie holding a digest of the address. Quota
checks treat any request carrying that cookie as subscriber-tier and key the
quota on the digest, so the address itself is never stored or logged.
"""

from __future__ import annotations

import hashlib
import logging

from app.core.errors import ValidationAppError
from app.core.logging import hash_for_log
from app.schemas.quota import QuotaClass

logger = logging.getLogger(__name__)

UPGRADE_MESSAGE = (
    f"Subscribed! Your daily limit has been upgraded to "
    f"{QuotaClass.GENERAL_TOOL.limit_for(True)} searches."
)


def subscriber_token(email: str) -> str:
    """Hex SHA-256 of the normalized address.

    >>> subscriber_token(" Fan@Example.com ") == subscriber_token("fan@example.com")
    True
    """
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()


def subscribe(email: str | None) -> str:
    """Validate ``email`` and return the subscriber cookie value.

    Raises:
        ValidationAppError: If the address is missing or has no ``@``.
    """
    if not email or "@" not in email:
        raise ValidationAppError(
            code="invalid_email",
            message="Please provide a valid email address",
        )

    token = subscriber_token(email)
    logger.info("subscription.upgraded", extra={"subscriber_hash": hash_for_log(token)})
    return token
