# File: utils/__init__.py
"""Pure Python utilities for Breathwork.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Calendar-day normalization, ISO parsing, month keys
    - retry_utils: Retry/backoff policy for remote store I/O

Usage:
    from .utils import dt_utils
    from .utils.retry_utils import RetryPolicy
"""

from . import dt_utils, retry_utils

__all__ = ["dt_utils", "retry_utils"]
