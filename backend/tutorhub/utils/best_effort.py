"""
Bounded, failure-isolated execution for side effects that must never
affect the outcome of the operation that triggered them (calendar sync,
email notifications).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, TypeVar

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run_coroutine(coro: Any, timeout: float) -> Any:
    async def _bounded() -> Any:
        return await asyncio.wait_for(coro, timeout=timeout)

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_bounded())

    # Never block a running loop
    if inspect.iscoroutine(coro):
        coro.close()
    raise RuntimeError("run_best_effort cannot await a coroutine inside a running event loop")


def run_best_effort(
    label: str,
    func: Callable[..., Any],
    *args: Any,
    default: Optional[T] = None,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> Any:
    """
    Call func and return its result, or default if it raises or times out.

    Coroutine functions are awaited with a timeout on a fresh event loop, so
    this is for synchronous callers such as Celery tasks. Plain callables are
    expected to bound their own I/O (the calendar client carries a socket
    timeout). Failures are logged and swallowed.
    """
    if timeout is None:
        from ..core.config import settings

        timeout = settings.external_call_timeout_seconds

    integration = label.split(".", 1)[0]
    try:
        result = func(*args, **kwargs)
        if inspect.isawaitable(result):
            result = _run_coroutine(result, timeout)
        return result
    except asyncio.TimeoutError:
        logger.warning(f"Best-effort call '{label}' timed out after {timeout}s")
    except Exception as e:
        logger.error(f"Best-effort call '{label}' failed: {str(e)}", exc_info=True)
    prometheus_metrics.inc_side_effect_failure(integration)
    return default
