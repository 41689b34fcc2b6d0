"""Configuration for dinopark."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from dinopark._constants import FEED_URL
from dinopark.exceptions import DinoparkConfigError


def _env_float(env_key: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise DinoparkConfigError(f"{env_key} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise DinoparkConfigError(f"{env_key} must be positive, got {value!r}")
    return parsed


@dataclasses.dataclass(frozen=True)
class DinoparkConfig:
    """Service configuration.

    Parameters
    ----------
    feed_url : str
        URL of the NUDLS event feed.
    poll_interval : float
        Seconds between scheduled feed polls.
    request_timeout : float
        Total timeout in seconds for a single feed request.
    database_path : str
        Path of the SQLite database backing the entity store.
    store_timeout : float
        Seconds a store call waits on a locked database before failing.
    """

    feed_url: str = FEED_URL
    poll_interval: float = 120.0
    request_timeout: float = 10.0
    database_path: str = "dinopark.sqlite3"
    store_timeout: float = 5.0

    @classmethod
    def from_env(cls, **overrides: Any) -> DinoparkConfig:
        """Create configuration from environment variables.

        Reads ``NUDLS_FEED_URL``, ``NUDLS_POLL_INTERVAL``,
        ``NUDLS_REQUEST_TIMEOUT``, ``DINOPARK_DB_PATH`` and
        ``DINOPARK_STORE_TIMEOUT``. Explicit keyword arguments override
        environment values.

        Raises
        ------
        DinoparkConfigError
            If a numeric variable is not a positive number.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        feed_url = env.get("NUDLS_FEED_URL")
        if feed_url:
            config_kwargs["feed_url"] = feed_url.strip()

        db_path = env.get("DINOPARK_DB_PATH")
        if db_path:
            config_kwargs["database_path"] = db_path

        _ENV_FLOAT_MAP = {
            "NUDLS_POLL_INTERVAL": "poll_interval",
            "NUDLS_REQUEST_TIMEOUT": "request_timeout",
            "DINOPARK_STORE_TIMEOUT": "store_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
