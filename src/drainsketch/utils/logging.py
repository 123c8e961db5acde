"""
Logging helpers: sensitive data redaction and timing decorators.
"""

import functools
import logging
import re
import time
from typing import Any, Callable, List, Optional, Pattern, Set

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"

# Patterns for secrets embedded in free text (URLs, headers, messages)
SENSITIVE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"(access_token=)[^&\s\"']+", re.IGNORECASE),
    re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,&}]+", re.IGNORECASE),
    re.compile(r"(token[\"']?\s*[:=]\s*[\"']?)[^\"'\s,&}]+", re.IGNORECASE),
    re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)[^\"'\s,&}]+", re.IGNORECASE),
]

# Keys whose values are always redacted
SENSITIVE_FIELDS: Set[str] = {
    "access_token",
    "api_key",
    "mapbox_token",
    "password",
    "secret",
    "token",
    "authorization",
}


def redact_sensitive(data: Any, redaction_text: str = REDACTED) -> Any:
    """
    Redact sensitive information from data structures.

    Recursively traverses dictionaries, lists and tuples; strings have any
    token-like substrings replaced while keeping the key name visible.

    Example:
        >>> redact_sensitive("https://x/places/a.json?access_token=pk.123&country=US")
        'https://x/places/a.json?access_token=***REDACTED***&country=US'
    """
    if isinstance(data, dict):
        return {
            key: (
                redaction_text
                if str(key).lower() in SENSITIVE_FIELDS
                else redact_sensitive(value, redaction_text)
            )
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive(item, redaction_text) for item in data]
    if isinstance(data, tuple):
        return tuple(redact_sensitive(item, redaction_text) for item in data)
    if isinstance(data, str):
        redacted = data
        for pattern in SENSITIVE_PATTERNS:
            redacted = pattern.sub(lambda m: m.group(1) + redaction_text, redacted)
        return redacted
    return data


def log_async_performance(
    log_level: int = logging.INFO,
    threshold_ms: Optional[float] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to log async function execution time.

    Args:
        log_level: Logging level to use
        threshold_ms: Only log if execution time reaches this threshold (milliseconds)
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_name = f"{func.__module__}.{func.__qualname__}"
            start_time = time.perf_counter()

            try:
                return await func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                if threshold_ms is None or duration_ms >= threshold_ms:
                    logger.log(
                        log_level,
                        f"{func_name} executed in {duration_ms:.2f}ms",
                        extra={"duration_ms": duration_ms, "function": func_name},
                    )

        return wrapper

    return decorator
