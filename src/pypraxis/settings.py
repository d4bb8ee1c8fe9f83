"""Library-wide defaults.

Settings holds the defaults every Executor and session falls back to.
Construct it directly, or read it from PRAXIS_* environment variables
with Settings.from_env():

    $ export PRAXIS_DEFAULT_RETRIES=2
    $ export PRAXIS_POLL_INTERVAL_MS=10000

    settings = Settings.from_env()
    executor = Executor().with_settings(settings)
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import TypeVar

from pypraxis.models.retry import RetryPolicy
from pypraxis.sinks.base import DEFAULT_SUCCESS_MESSAGE

N = TypeVar("N", int, float)

ENV_PREFIX = "PRAXIS_"


@dataclass(frozen=True)
class Settings:
    """Defaults for retries, backoff, batching, polling, and paging."""

    default_retries: int = 0
    retry_initial_delay_ms: int = 1000
    retry_max_delay_ms: int = 30000
    retry_backoff_multiplier: float = 2.0
    retry_jitter_ratio: float = 0.1
    batch_size: int = 5
    delay_between_batches_ms: float = 100
    poll_interval_ms: float = 5000
    page_size: int = 20
    success_message: str = DEFAULT_SUCCESS_MESSAGE

    def retry_policy(self) -> RetryPolicy:
        """Build the default RetryPolicy described by these settings."""
        return RetryPolicy(
            max_retries=self.default_retries,
            initial_delay_ms=self.retry_initial_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
            jitter_ratio=self.retry_jitter_ratio,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Read settings from PRAXIS_* environment variables.

        Unset variables keep their defaults.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings with environment overrides applied

        Raises:
            ValueError: If a variable is set but cannot be parsed
        """
        env = os.environ if environ is None else environ
        settings = cls()
        overrides: dict[str, object] = {}

        def read(name: str, parse: Callable[[str], N], minimum: N) -> None:
            key = ENV_PREFIX + name.upper()
            raw = env.get(key)
            if raw is None or raw.strip() == "":
                return
            try:
                value = parse(raw.strip())
            except ValueError as e:
                raise ValueError(f"{key}={raw!r} is not a valid {parse.__name__}") from e
            if value < minimum:
                raise ValueError(f"{key}={raw!r} must be >= {minimum}")
            overrides[name] = value

        read("default_retries", int, 0)
        read("retry_initial_delay_ms", int, 0)
        read("retry_max_delay_ms", int, 0)
        read("retry_backoff_multiplier", float, 1.0)
        read("batch_size", int, 1)
        read("delay_between_batches_ms", float, 0.0)
        read("poll_interval_ms", float, 1.0)
        read("page_size", int, 1)

        message = env.get(ENV_PREFIX + "SUCCESS_MESSAGE")
        if message:
            overrides["success_message"] = message

        return replace(settings, **overrides)
