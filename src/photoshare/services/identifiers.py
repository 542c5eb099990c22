"""Photo identifier minting strategies."""

import re
import secrets
import time
from datetime import UTC, datetime
from typing import Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)

RANDOM_STRATEGY = "random"
NAME_TIMESTAMP_STRATEGY = "name_timestamp"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


class IdentifierMinter(Protocol):
    def mint(self, name: str | None = None) -> str: ...


class RandomIdMinter:
    """``<epoch-ms>_<12 hex chars>``: sortable by time, collision-free in practice."""

    def __init__(self, random_bytes: int = 6) -> None:
        self.random_bytes = random_bytes

    def mint(self, name: str | None = None) -> str:
        return f"{int(time.time() * 1000)}_{secrets.token_hex(self.random_bytes)}"


class NameTimestampMinter:
    """
    Legacy ``<sanitized-name>_<YYYYmmddHHMMSS>`` identifiers.

    Two uploads with the same name inside one second get the same id and the
    second overwrites the first. Kept for stores populated that way; new
    deployments should use ``RandomIdMinter``.
    """

    fallback = "photo"
    max_name_length = 40

    def mint(self, name: str | None = None) -> str:
        safe_name = _UNSAFE_CHARS.sub("_", (name or "").strip()).strip("_")[: self.max_name_length]
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
        return f"{safe_name or self.fallback}_{stamp}"


def get_id_minter(strategy: str = RANDOM_STRATEGY) -> IdentifierMinter:
    """
    Pick the minter named by configuration.

    Raises:
        ValueError: For an unknown strategy name
    """
    if strategy == RANDOM_STRATEGY:
        return RandomIdMinter()
    if strategy == NAME_TIMESTAMP_STRATEGY:
        logger.warning("legacy_id_strategy_enabled", strategy=strategy)
        return NameTimestampMinter()
    raise ValueError(f"Unknown ID_STRATEGY '{strategy}'. Use '{RANDOM_STRATEGY}' or '{NAME_TIMESTAMP_STRATEGY}'")
