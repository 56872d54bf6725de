"""Telemetry helpers for timing pipeline steps and scoping log context."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from contextvars import Token
from types import TracebackType
from typing import Any, ParamSpec, TypeVar, overload

from src.commons.telemetry.logger import get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


@overload
def timed(
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timed(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Log how long a call took and whether it raised.

    Works on sync and async functions, with or without arguments:
        @timed
        async def stage(...): ...

        @timed(threshold_ms=500)
        def copy(...): ...

    Each record carries ``duration_ms`` and ``outcome`` ("ok" or "error");
    failures also carry ``error_type``. Failures are logged regardless of
    ``threshold_ms``.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def _report(start: float, error: BaseException | None) -> None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if error is None and threshold_ms is not None and elapsed_ms < threshold_ms:
                return
            extra: dict[str, Any] = {
                "duration_ms": round(elapsed_ms, 2),
                "outcome": "ok" if error is None else "error",
            }
            if error is not None:
                extra["error_type"] = type(error).__name__
            verb = "completed" if error is None else "failed"
            log.log(level, f"{fn.__qualname__} {verb}", extra=extra)

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                start = time.perf_counter()
                try:
                    result = await fn(*args, **kwargs)
                except BaseException as e:
                    _report(start, e)
                    raise
                _report(start, None)
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except BaseException as e:
                _report(start, e)
                raise
            _report(start, None)
            return result

        return sync_wrapper

    if func is not None:
        return decorator(func)
    return decorator


class LogContext:
    """Attach fields to every log line emitted inside the ``with`` block.

    Nesting merges fields; leaving a block restores exactly what was there
    before, even if an inner block changed the context directly.
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Token[dict[str, Any]] | None = None

    def __enter__(self) -> "LogContext":
        current = log_context_var.get({})
        self._token = log_context_var.set({**current, **self.fields})
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            log_context_var.reset(self._token)
            self._token = None
