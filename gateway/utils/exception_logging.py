"""
Exception logging helpers for the hosting layer.

Upstream transport failures propagate out of the forwarding handler; these
helpers let the application log them (including exception groups raised by
anyio task groups) without the logging itself ever raising.
"""

import logging


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _safe_get_exceptions(exception_group) -> list:
    """Return the sub-exceptions of an exception group, or an empty list."""
    try:
        return list(exception_group.exceptions)
    except Exception:
        return []


def _describe(exception) -> str:
    exc_type = type(exception).__name__ if exception is not None else "NoneType"
    return f"{exc_type}: {_safe_str(exception)}"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with detailed information, including sub-exceptions of
    exception groups. Never raises, even for broken exception objects or
    failing loggers.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Gateway]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        safe_prefix = _safe_str(prefix) if prefix is not None else ""
        sub_exceptions = _safe_get_exceptions(exception)

        if sub_exceptions:
            logger.log(
                level,
                f"{safe_prefix} Exception with {len(sub_exceptions)} sub-exceptions: "
                f"{_safe_str(exception)}",
            )
            for i, sub_exc in enumerate(sub_exceptions):
                try:
                    logger.log(
                        level,
                        f"{safe_prefix} Sub-exception {i+1}: {_describe(sub_exc)}",
                        exc_info=sub_exc,
                    )
                except Exception:
                    continue
        else:
            logger.log(
                level,
                f"{safe_prefix} Exception: {_safe_str(exception)}",
                exc_info=exception if exception is not None else False,
            )
    except Exception:
        try:
            if logger is not None:
                logger.log(logging.ERROR, "Exception logging failed")
        except Exception:
            # Logging is best effort; never let it mask the original failure
            pass


def format_exception_message(exception: Exception) -> str:
    """
    Format an exception as one line, including sub-exceptions of exception groups.
    Never raises.
    """
    try:
        if exception is None:
            return "None"

        sub_exceptions = _safe_get_exceptions(exception)

        if not sub_exceptions:
            return _describe(exception)

        joined = "; ".join(_describe(sub_exc) for sub_exc in sub_exceptions)
        return f"{_safe_str(exception)} (Sub-exceptions: {joined})"
    except Exception:
        return "<exception (formatting failed)>"
