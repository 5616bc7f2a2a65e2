"""
Retry utilities for storage operations.
"""

from compendium.services.rate_limiting.retry import retry_with_backoff, retry_async

__all__ = ["retry_with_backoff", "retry_async"]
