"""stack.py - Turning unexpected exceptions into chain errors.

Two helpers live here:

    ``recover`` / ``catch``
        Convert an exception that escaped ordinary error handling into a
        ChainError tagged ``PANIC``. The recorded stack starts at the line that
        raised, continues through the frames the exception unwound and ends
        with the frames above the recovering helper; the helper's own frame is
        left out so the result reads like an error returned from the raise
        site.

    ``abort`` / ``resume``
        Short-circuit deeply nested work with an error. ``Abort`` is the one
        sentinel exception used for this; ``resume`` is the boundary that
        catches it and nothing else.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .caller import DEFAULT_LIMIT, Caller, Frame, capture
from .errors import ChainError, wrap_skip

PANIC = "PANIC"


def _unwound_frames(exc: BaseException) -> List[Frame]:
    frames = []
    tb = exc.__traceback__
    while tb is not None:
        frames.append(Frame.of_traceback(tb))
        tb = tb.tb_next
    # the first entry is the frame that caught the exception
    frames = frames[1:]
    frames.reverse()
    return frames


def recover(exc: BaseException, outer: Optional[Caller] = None) -> ChainError:
    """Convert a caught exception into a chain error.

    A ChainError was raised deliberately and is returned unchanged. Any other
    exception is wrapped in a ``PANIC`` layer whose caller is built from the
    exception's traceback.

    Args:
        exc: The exception, caught by the calling helper.
        outer: The stack above the calling helper. Defaults to the caller of
            the function calling ``recover``.

    Returns:
        A ChainError describing the failure.
    """
    if isinstance(exc, ChainError):
        return exc

    if outer is None:
        outer = capture(2)

    inner = _unwound_frames(exc)
    frames = (inner + list(outer.stack))[:DEFAULT_LIMIT]
    caller = Caller.from_frames(frames, outer.depth + len(inner))

    return ChainError(PANIC, cause=exc, caller=caller)


def catch(fn: Callable[..., object], *args, **kwargs) -> Optional[ChainError]:
    """Call ``fn`` and return its failure as an error instead of raising.

    ``fn`` may return an error, raise one, or return anything else. A returned
    error is wrapped for the caller of ``catch``; a raised exception is
    recovered. Any other return value counts as success and yields ``None``.

    Example:
        >>> err = catch(lambda: 1 / 0)
        >>> str(err)
        'PANIC: division by zero'
    """
    try:
        result = fn(*args, **kwargs)
    except Exception as exc:
        return recover(exc, capture(1))
    if not isinstance(result, BaseException):
        return None
    return wrap_skip(result, 1)


class Abort(Exception):
    """Sentinel raised by ``abort`` and caught only by ``resume``.

    Attributes:
        error: The error the aborted work failed with.
    """

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


def abort(err: BaseException) -> None:
    """Abort the surrounding ``resume`` block with ``err``."""
    raise Abort(wrap_skip(err, 1))


def abort_if(err: Optional[BaseException]) -> None:
    """Abort with ``err`` if it is not ``None``."""
    if err is not None:
        raise Abort(wrap_skip(err, 1))


@contextmanager
def resume(handler: Callable[[BaseException], None]) -> Iterator[None]:
    """Catch an ``abort`` raised inside the block and pass its error on.

    Exceptions other than ``Abort`` propagate unchanged.

    Example:
        >>> errors = []
        >>> with resume(errors.append):
        ...     abort(errorf("stop"))
        >>> str(errors[0])
        'stop'
    """
    try:
        yield
    except Abort as aborted:
        handler(aborted.error)
