"""Retry builders for code allocation using tenacity."""

from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from almox.config import settings
from almox.services.codes.exceptions import DuplicateOnInsert, QueryFailure


@dataclass
class CodeRetryConfig:
    """Bounded retry with jittered exponential backoff."""

    max_attempts: int = 3
    min_wait: float = 0.05
    max_wait: float = 1.0
    multiplier: float = 0.05

    @classmethod
    def for_queries(cls) -> "CodeRetryConfig":
        return cls(
            max_attempts=settings.code_query_retry_attempts,
            min_wait=settings.code_retry_min_wait,
            max_wait=settings.code_retry_max_wait,
            multiplier=settings.code_retry_min_wait,
        )

    @classmethod
    def for_inserts(cls) -> "CodeRetryConfig":
        return cls(
            max_attempts=settings.code_insert_max_retries,
            min_wait=settings.code_retry_min_wait,
            max_wait=settings.code_retry_max_wait,
            multiplier=settings.code_retry_min_wait,
        )


def _retrying(exc_type: type[BaseException], cfg: CodeRetryConfig) -> AsyncRetrying:
    return AsyncRetrying(
        retry=retry_if_exception_type(exc_type),
        stop=stop_after_attempt(max(cfg.max_attempts, 1)),
        wait=wait_random_exponential(multiplier=cfg.multiplier, min=cfg.min_wait, max=cfg.max_wait),
        reraise=True,
    )


def get_query_retrying(config: CodeRetryConfig | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for QueryFailure (transient store reads).

    Usage:
        async for attempt in get_query_retrying():
            with attempt:
                value = await scanner.current_max(key)
    """
    return _retrying(QueryFailure, config or CodeRetryConfig.for_queries())


def get_insert_retrying(config: CodeRetryConfig | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for DuplicateOnInsert (code collided on insert)."""
    return _retrying(DuplicateOnInsert, config or CodeRetryConfig.for_inserts())
