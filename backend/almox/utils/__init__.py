"""Utility functions and helpers."""

from almox.utils.retry import CodeRetryConfig, get_insert_retrying, get_query_retrying

__all__ = [
    "CodeRetryConfig",
    "get_insert_retrying",
    "get_query_retrying",
]
