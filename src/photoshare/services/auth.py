"""Shared-secret access gate for the photo listing."""

import hmac

from ..logging_config import get_logger, log_security_event

logger = get_logger(__name__)

ADMIN_HEADER_NAME = "x-gallery-password"


class AccessGate:
    """
    Classifies a caller as admin or anonymous.

    Admin means the supplied secret equals the configured one. There is no
    lockout, hashing or rate limiting; it is a static shared token.
    """

    def __init__(self, secret: str, constant_time: bool = False) -> None:
        self._secret = secret
        self.constant_time = constant_time

    def is_admin(self, supplied: str | None) -> bool:
        """
        Check a caller-supplied secret.

        Args:
            supplied: Raw header value, possibly missing

        Returns:
            bool: True only for an exact match with the configured secret
        """
        candidate = (supplied or "").strip()
        if not candidate or not self._secret:
            return False

        if self.constant_time:
            matched = hmac.compare_digest(candidate.encode("utf-8"), self._secret.encode("utf-8"))
        else:
            matched = candidate == self._secret

        if not matched:
            log_security_event("admin_secret_mismatch", header=ADMIN_HEADER_NAME)
        return matched
