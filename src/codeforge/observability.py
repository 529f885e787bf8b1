"""Logging setup and LangSmith tracing.

Tracing is controlled entirely through the LangSmith environment variables,
so anything else in the process that uses langsmith sees the same switch.
"""

import inspect
import logging
import os
from functools import wraps
from typing import Optional

from langsmith import traceable
from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger(__name__)

DEFAULT_PROJECT = "codeforge"

API_KEY_VAR = "LANGSMITH_API_KEY"
TRACING_VAR = "LANGSMITH_TRACING"
PROJECT_VAR = "LANGSMITH_PROJECT"

QUIET_LOGGERS = ("LiteLLM", "litellm", "httpx")


def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Send all log records through a single rich handler on stderr.

    Args:
        verbose: DEBUG level and rich tracebacks instead of INFO
        console: Console to write to
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _set_tracing(on: bool) -> None:
    os.environ[TRACING_VAR] = "true" if on else "false"


def configure_tracing(
    project_name: str = DEFAULT_PROJECT,
    api_key: Optional[str] = None,
    enabled: Optional[bool] = None,
) -> bool:
    """Point LangSmith at ``project_name`` and switch tracing on or off.

    An explicit ``enabled`` wins; otherwise an existing LANGSMITH_TRACING
    value is kept and tracing defaults to on. Without an API key (passed or
    in LANGSMITH_API_KEY) tracing is always off and generation is unaffected.

    Returns:
        Whether tracing is enabled afterwards.
    """
    if api_key:
        os.environ[API_KEY_VAR] = api_key

    if not os.getenv(API_KEY_VAR):
        _set_tracing(False)
        logger.info("No LangSmith API key, tracing disabled")
        return False

    os.environ[PROJECT_VAR] = project_name
    if enabled is not None:
        _set_tracing(enabled)
    else:
        os.environ.setdefault(TRACING_VAR, "true")

    on = is_tracing_enabled()
    logger.info("LangSmith tracing %s (project %s)", "enabled" if on else "off", project_name)
    return on


def disable_tracing() -> None:
    """Turn tracing off, leaving the API key and project in place."""
    _set_tracing(False)
    logger.debug("LangSmith tracing disabled")


def is_tracing_enabled() -> bool:
    return os.getenv(TRACING_VAR, "").lower() == "true"


def trace_function(name: Optional[str] = None, **trace_kwargs):
    """Trace calls with ``langsmith.traceable`` while tracing is enabled.

    The switch is read on every call, so functions decorated at import time
    start tracing as soon as ``configure_tracing`` turns it on. Coroutine
    functions stay coroutine functions.

    Example:
        ```python
        @trace_function(name="codeforge_generate")
        async def generate(request):
            ...
        ```
    """

    def decorator(func):
        traced = traceable(name=name or func.__name__, **trace_kwargs)(func)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                target = traced if is_tracing_enabled() else func
                return await target(*args, **kwargs)

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            target = traced if is_tracing_enabled() else func
            return target(*args, **kwargs)

        return wrapper

    return decorator
