"""Utility modules."""

from smc_app.utils.retry import ExponentialBackoff, RetryError, call_with_retry

__all__ = [
    "ExponentialBackoff",
    "RetryError",
    "call_with_retry",
]
