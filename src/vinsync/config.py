"""Service configuration for vinsync."""

from __future__ import annotations

import dataclasses
import os
from typing import TYPE_CHECKING, Any

from vinsync._constants import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_REDIS_URL,
    DEFAULT_RETRY_BASE_DELAY,
    NEW_MAX_ATTEMPTS,
    PLATE_CHANGE_MAX_ATTEMPTS,
    REASSIGN_MAX_ATTEMPTS,
)
from vinsync.exceptions import VinConfigError

if TYPE_CHECKING:
    from vinsync.models.context import Disposition
    from vinsync.reconcile.retry import RetryPolicy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, raw: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(raw)
    except ValueError as exc:
        raise VinConfigError(f"{env_key} must be a {kind.__name__}, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class VinSyncConfig:
    """Service configuration.

    Parameters
    ----------
    redis_url : str
        Connection URL of the Redis instance holding the associations.
    key_prefix : str
        Namespace prepended to every key (``<prefix>:chassis:<vin>``).
    connect_timeout : float
        Seconds allowed to open a connection.
    operation_timeout : float
        Seconds allowed for a single store command or pipeline.
    health_check_interval : int
        Seconds between idle connection health checks.
    fail_fast : bool
        When ``True`` the service refuses to start if the store does not
        answer a ping.  When ``False`` startup logs a warning and the
        individual calls fail until the store comes back.
    retry_base_delay : float
        Base of the linear backoff between conditional commit attempts;
        attempt ``n`` waits ``retry_base_delay * n`` seconds.
    new_max_attempts : int
        Commit attempts for brand new associations.
    plate_change_max_attempts : int
        Commit attempts when a chassis moves to a new plate.
    reassign_max_attempts : int
        Commit attempts when a plate moves to another chassis.
    strict_error_accounting : bool
        Count records that exhausted their retries as batch errors.
        ``False`` keeps the legacy behavior where they are only logged
        and listed in ``failed_records``.
    http_host : str
        Bind address of the HTTP surface.
    http_port : int
        Bind port of the HTTP surface.
    """

    redis_url: str = DEFAULT_REDIS_URL
    key_prefix: str = DEFAULT_KEY_PREFIX
    connect_timeout: float = 5.0
    operation_timeout: float = 5.0
    health_check_interval: int = 60
    fail_fast: bool = False
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    new_max_attempts: int = NEW_MAX_ATTEMPTS
    plate_change_max_attempts: int = PLATE_CHANGE_MAX_ATTEMPTS
    reassign_max_attempts: int = REASSIGN_MAX_ATTEMPTS
    strict_error_accounting: bool = True
    http_host: str = "127.0.0.1"
    http_port: int = 8080

    def __post_init__(self) -> None:
        for name in ("new_max_attempts", "plate_change_max_attempts", "reassign_max_attempts"):
            if getattr(self, name) < 1:
                raise VinConfigError(f"{name} must be at least 1")
        if self.retry_base_delay < 0:
            raise VinConfigError("retry_base_delay must not be negative")
        if not self.key_prefix.strip():
            raise VinConfigError("key_prefix must be non-empty")

    def retry_policies(self) -> dict[Disposition, RetryPolicy]:
        """Per-disposition retry policies derived from this configuration."""
        from vinsync.models.context import Disposition
        from vinsync.reconcile.retry import RetryPolicy

        return {
            Disposition.NEW: RetryPolicy(self.new_max_attempts, self.retry_base_delay),
            Disposition.PLATE_CHANGED: RetryPolicy(self.plate_change_max_attempts, self.retry_base_delay),
            Disposition.VIN_REASSIGNED: RetryPolicy(self.reassign_max_attempts, self.retry_base_delay),
        }

    @classmethod
    def from_env(cls, **overrides: Any) -> VinSyncConfig:
        """Create configuration from ``VINSYNC_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        VinConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "VINSYNC_REDIS_URL": "redis_url",
            "VINSYNC_KEY_PREFIX": "key_prefix",
            "VINSYNC_HTTP_HOST": "http_host",
        }
        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "VINSYNC_CONNECT_TIMEOUT": ("connect_timeout", float),
            "VINSYNC_OPERATION_TIMEOUT": ("operation_timeout", float),
            "VINSYNC_HEALTH_CHECK_INTERVAL": ("health_check_interval", int),
            "VINSYNC_RETRY_BASE_DELAY": ("retry_base_delay", float),
            "VINSYNC_NEW_MAX_ATTEMPTS": ("new_max_attempts", int),
            "VINSYNC_PLATE_CHANGE_MAX_ATTEMPTS": ("plate_change_max_attempts", int),
            "VINSYNC_REASSIGN_MAX_ATTEMPTS": ("reassign_max_attempts", int),
            "VINSYNC_HTTP_PORT": ("http_port", int),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, (field_name, kind) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, kind)

        if "fail_fast" not in overrides:
            config_kwargs["fail_fast"] = _env_bool(env.get("VINSYNC_FAIL_FAST"), False)

        if "strict_error_accounting" not in overrides:
            config_kwargs["strict_error_accounting"] = _env_bool(
                env.get("VINSYNC_STRICT_ERROR_ACCOUNTING"),
                True,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
