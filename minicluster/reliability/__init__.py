"""
Reliability infrastructure for cluster orchestration.

This module provides cross-cutting reliability components:
- Retry with jitter for RPC dialing and unary calls
"""

from minicluster.reliability.retry import (
    JitterStrategy as JitterStrategy,
    RetryConfig as RetryConfig,
    RetryExecutor as RetryExecutor,
    calculate_jittered_delay as calculate_jittered_delay,
)
