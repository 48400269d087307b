"""Rate limiting adapters.

This package provides a small abstraction layer so the dispatcher depends on
a permit interface while the fixed-window limiter owns the timing rules.
"""

from crpt.adapters.rate_limit.base import AbstractPermitLimiter
from crpt.adapters.rate_limit.windowed import WindowedLimiter

__all__ = [
    "AbstractPermitLimiter",
    "WindowedLimiter",
]
