"""
Thread-safe rate-limited logging.

Registries are rebuilt for every runtime upgrade and every client, so a
warning about the same metadata quirk would otherwise repeat on each build.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_seen_messages = TTLCache(maxsize=256, ttl=3600)
_seen_messages_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per hour.

    Args:
        message: Message to log
        level: Log level name (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to this module's logger)

    Returns:
        True if the message was logged, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = (log_instance.name, level, message)

    with _seen_messages_lock:
        if key in _seen_messages:
            return False
        _seen_messages[key] = True
    log_method(message)
    return True


def reset_rate_limits() -> None:
    """Forget every logged message."""
    with _seen_messages_lock:
        _seen_messages.clear()
