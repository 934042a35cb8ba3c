import logging
from typing import Optional

# Global project logger (level and handler set by logging_config)
logger = logging.getLogger("moodlist")


def mask_token(token: Optional[str]) -> str:
    """
    Printable form of an OAuth token: only the last 4 characters survive.
    """
    if not token:
        return "<none>"
    return f"…{token[-4:]}"


def _with_user(message: str, user_id: Optional[str]) -> str:
    if user_id is None:
        return message
    return f"[user={user_id}] {message}"


def log_info(message: str, user_id: Optional[str] = None) -> None:
    logger.info("%s", _with_user(message, user_id))


def log_step(message: str, user_id: Optional[str] = None) -> None:
    """
    Action step / ongoing work (outbound call, assembly phase...).
    """
    logger.info("→ %s", _with_user(message, user_id))


def log_success(message: str, user_id: Optional[str] = None) -> None:
    logger.info("✅ %s", _with_user(message, user_id))


def log_warning(message: str, user_id: Optional[str] = None) -> None:
    """
    Non-fatal problem: a retry, a dropped track, a skipped side effect.
    """
    logger.warning("⚠️ %s", _with_user(message, user_id))


def log_error(message: str, user_id: Optional[str] = None) -> None:
    logger.error("❌ %s", _with_user(message, user_id))


def log_progress(current: int, total: int, prefix: str = "") -> None:
    """
    Per-item progress at DEBUG level, e.g. "Resolving tracks 3/17 (17.6%)".
    """
    if total <= 0:
        total = 1

    percent = max(0.0, min(1.0, current / total)) * 100
    if prefix:
        logger.debug("%s %d/%d (%.1f%%)", prefix, current, total, percent)
    else:
        logger.debug("%d/%d (%.1f%%)", current, total, percent)
