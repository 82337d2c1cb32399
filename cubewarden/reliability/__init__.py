"""
Reliability infrastructure for store operations.

This module provides cross-cutting reliability components:
- Retry with jitter for optimistic-concurrency conflicts
- Backoff delay calculation for controller requeues
"""

from cubewarden.reliability.retry import (
    JitterStrategy as JitterStrategy,
    RetryConfig as RetryConfig,
    RetryExecutor as RetryExecutor,
    calculate_jittered_delay as calculate_jittered_delay,
)
