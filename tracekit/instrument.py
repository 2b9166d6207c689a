"""instrument.py - Running and decorating functions with spans.

Two entry points wrap a unit of work in a span so the work shows up on the
timeline without touching span handles directly:

    ``run(fn)``
        Calls ``fn`` inside a span named after the caller of ``run``. Any
        exception escaping ``fn`` is converted into a chain error, recorded
        on the span and raised. Unexpected exceptions are tagged ``PANIC``.

    ``@traced(tracer)``
        Pushes a span named after the decorated function onto ``tracer`` for
        the duration of every call and tags it with the bound arguments.

Neither helper swallows exceptions.
"""

import inspect
import logging
from functools import wraps
from typing import Any, Callable, NamedTuple, Optional, TypeVar

from .caller import Caller, capture
from .collector import Collector
from .errors import ChainError
from .stack import recover
from .tracer import Span, Tracer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunContext(NamedTuple):
    """What ``run`` hands to the function it runs.

    Attributes:
        caller: The caller of ``run``.
        span: The span tracking the call.
    """

    caller: Caller
    span: Span

    def log(self, message: str, *args) -> None:
        self.span.log(message, *args)

    def tag(self, key: str, value: Any) -> None:
        self.span.tag(key, value)


def run(
    fn: Callable[[RunContext], T],
    parent: Optional[Span] = None,
    collector: Optional[Collector] = None,
) -> T:
    """Run ``fn`` in a span named after the caller of ``run``.

    Args:
        fn: Called with a RunContext.
        parent: Span to nest the new span in. A new trace is started when
            omitted.
        collector: Receives the span of a new trace. Ignored when ``parent``
            is given; the child reports where its parent does.

    Returns:
        Whatever ``fn`` returns.

    Raises:
        ChainError: If ``fn`` raised. The raised error carries the caller of
            ``run`` and wraps either the ChainError ``fn`` raised or a
            ``PANIC`` layer around any other exception.

    Example:
        >>> def work(ctx):
        ...     ctx.tag("rows", 12)
        ...     return 12
        >>> run(work, collector=tester)
        12
    """
    caller = capture(1)

    if parent is not None:
        span = parent.child(caller.short)
    else:
        span = Span(caller.short, collector=collector)

    try:
        return fn(RunContext(caller, span))
    except Exception as exc:
        err = ChainError(cause=recover(exc, caller), caller=caller)
        span.record(err)
        raise err
    finally:
        span.end()


def _tag_arguments(span: Span, func: Callable, args: tuple, kwargs: dict) -> None:
    try:
        bound = inspect.signature(func).bind(*args, **kwargs)
        bound.apply_defaults()
        for name, value in bound.arguments.items():
            span.tag(f"arg.{name}", value)
    except Exception:
        # builtins without a signature, unserialisable values
        logger.debug("could not tag arguments of %s", func.__qualname__, exc_info=True)


def traced(tracer: Tracer) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator factory tracing every call of a function on ``tracer``.

    Each call pushes a span named after the function's qualified name, tags
    it with ``arg.<name>`` attributes for every bound argument, records an
    escaping exception as an ``error`` event and pops the span. Exceptions are
    re-raised unchanged.

    Args:
        tracer: The tracer to push spans onto.

    Example:
        >>> tracer = Tracer.start("job", collector=tester)
        >>> @traced(tracer)
        ... def divide(a, b):
        ...     return a / b
        >>> divide(10, 2)
        5.0
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs):
            span = tracer.push(func.__qualname__)
            _tag_arguments(span, func, args, kwargs)
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                span.record(exc)
                raise
            finally:
                tracer.pop()

        return wrapper

    return decorator
