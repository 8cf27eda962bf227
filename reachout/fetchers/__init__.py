"""
Fetcher layer for ReachOut.

Provides:
- HttpFetcher: single-attempt async GET with a browser User-Agent and timeout
- RateLimiter: process-wide minimum spacing between page fetches
- with_retry: exponential-backoff retry for any async operation
"""

from reachout.fetchers.http import HttpFetcher, FetchResult, BROWSER_USER_AGENT
from reachout.fetchers.throttle import RateLimiter, with_retry, backoff_delay_ms

__all__ = [
    "HttpFetcher",
    "FetchResult",
    "BROWSER_USER_AGENT",
    "RateLimiter",
    "with_retry",
    "backoff_delay_ms",
]
