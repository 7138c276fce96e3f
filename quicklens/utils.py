#!/usr/bin/env python3
"""
Utility functions for transport error detection
"""


def is_rate_limit_error(error_msg, status_code=None):
    """Check if error indicates rate limiting"""
    if status_code == 429:
        return True
    error_str = str(error_msg).lower()
    patterns = ["too many requests", "rate limit", "rate_limit", "quota exceeded",
                "throttl", "resource exhausted", "resource_exhausted"]
    return any(p in error_str for p in patterns)


def is_invalid_key_error(error_msg, status_code=None):
    """Check if error indicates invalid API key"""
    if status_code in [401, 403]:
        return True
    error_str = str(error_msg).lower()
    patterns = ["invalid api key", "invalid key", "api key invalid",
                "unauthorized", "forbidden", "not authorized"]
    return any(p in error_str for p in patterns)


def is_retryable_status(status_code):
    """Server-side failures and rate limits are worth another attempt"""
    return status_code == 429 or (status_code is not None and 500 <= status_code < 600)
