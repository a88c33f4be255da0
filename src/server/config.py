"""Server configuration."""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
import os

logger = logging.getLogger(__name__)

_RECOGNISED_BOOL_VALUES = frozenset(
    ("1", "true", "yes", "0", "false", "no")
)


@dataclass(frozen=True)
class LinkConfig:
    """Share link settings.

    ``default_expires_in_ms`` applies when a client omits a lifetime;
    client-supplied lifetimes above ``max_expires_in_ms`` are rejected.
    """

    base_url: str = "https://acceptconnect.app"
    default_expires_in_ms: int = 24 * 60 * 60 * 1000
    max_expires_in_ms: int = 30 * 24 * 60 * 60 * 1000

    @property
    def default_expires_in(self) -> timedelta:
        return timedelta(milliseconds=self.default_expires_in_ms)


@dataclass(frozen=True)
class ProximityConfig:
    default_ttl_ms: int = 5 * 60 * 1000
    max_ttl_ms: int = 60 * 60 * 1000

    @property
    def default_ttl(self) -> timedelta:
        return timedelta(milliseconds=self.default_ttl_ms)


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_minute: int = 120


@dataclass(frozen=True)
class PushConfig:
    """Configuration for push delivery through the Expo push service.

    Disabled by default.  Set ``PUSH_ENABLED=true`` to notify the devices
    of a direct-addressed recipient when a message is created.  Delivery
    failures are logged and never fail the originating request.
    """

    enabled: bool = False
    endpoint: str = "https://exp.host/--/api/v2/push/send"
    access_token: str = ""
    timeout: float = 5.0


@dataclass(frozen=True)
class ServerConfig:
    db_path: Path = field(default_factory=lambda: Path("data/consent.db"))
    version: str = "1.0.0"
    link: LinkConfig = field(default_factory=LinkConfig)
    proximity: ProximityConfig = field(default_factory=ProximityConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    push: PushConfig = field(default_factory=PushConfig)


def _parse_bool(value: str, default: bool) -> bool:
    """Parse a boolean environment variable with explicit default.

    Recognises ``true/1/yes`` and ``false/0/no`` (case-insensitive).
    Returns *default* when the value is empty or unset.
    Logs a warning and returns *default* for unrecognised values
    (e.g. typos like ``ture``).
    """
    if not value:
        return default
    normalised = value.lower()
    if normalised not in _RECOGNISED_BOOL_VALUES:
        logger.warning(
            "Unrecognised boolean value %r, using default %s. "
            "Expected one of: true/1/yes or false/0/no.",
            value,
            default,
        )
        return default
    return normalised in ("1", "true", "yes")


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_config_from_env() -> ServerConfig:
    link = LinkConfig(
        base_url=os.environ.get("SHARE_BASE_URL", "https://acceptconnect.app"),
        default_expires_in_ms=_positive_int("LINK_EXPIRES_IN_MS", 24 * 60 * 60 * 1000),
        max_expires_in_ms=_positive_int("LINK_MAX_EXPIRES_IN_MS", 30 * 24 * 60 * 60 * 1000),
    )
    if link.default_expires_in_ms > link.max_expires_in_ms:
        raise ValueError("LINK_EXPIRES_IN_MS cannot exceed LINK_MAX_EXPIRES_IN_MS")

    proximity = ProximityConfig(
        default_ttl_ms=_positive_int("PROXIMITY_TTL_MS", 5 * 60 * 1000),
        max_ttl_ms=_positive_int("PROXIMITY_MAX_TTL_MS", 60 * 60 * 1000),
    )
    if proximity.default_ttl_ms > proximity.max_ttl_ms:
        raise ValueError("PROXIMITY_TTL_MS cannot exceed PROXIMITY_MAX_TTL_MS")

    push_enabled = _parse_bool(os.environ.get("PUSH_ENABLED", ""), default=False)
    push_endpoint = os.environ.get("PUSH_ENDPOINT", "https://exp.host/--/api/v2/push/send")
    if push_enabled and not push_endpoint:
        raise ValueError("PUSH_ENDPOINT required when PUSH_ENABLED is set")

    return ServerConfig(
        db_path=Path(os.environ.get("DB_PATH", "data/consent.db")),
        link=link,
        proximity=proximity,
        rate_limit=RateLimitConfig(
            requests_per_minute=_positive_int("RATE_LIMIT_REQUESTS_PER_MINUTE", 120),
        ),
        push=PushConfig(
            enabled=push_enabled,
            endpoint=push_endpoint,
            access_token=os.environ.get("PUSH_ACCESS_TOKEN", ""),
            timeout=float(os.environ.get("PUSH_TIMEOUT", "5.0")),
        ),
    )
