"""
Request scheduling module.

Rate-limited admission of batch fetch tasks and per-batch retries.
"""
from .rate_limiter import RateLimiter
from .retry import BatchFetchTask, BatchOutcome, TaskState

__all__ = [
    "RateLimiter",
    "BatchFetchTask",
    "BatchOutcome",
    "TaskState",
]
