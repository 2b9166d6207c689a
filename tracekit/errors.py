"""errors.py - Error chains that carry the call site they were created at.

A ChainError is an ordinary exception with three extra pieces of state: an
optional message, an optional wrapped cause and the Caller captured when the
error was created. Wrapping an error on its way up the stack records where it
passed through, so the full rendering of a chain reads like a stack trace
annotated with messages.

Wrapping is deduplicated: ``wrap`` returns the original error unchanged when
that error's recorded stack already contains the current call site. Nested
calls such as ``wrap(f())`` where ``f`` itself returns ``wrap(g())`` therefore
produce one stack segment instead of one per level.

Typical usage::

    from tracekit import errorf, wrap, wrapf

    def load(path):
        if not path:
            raise errorf("missing path")
        ...

    def handler(path):
        try:
            return load(path)
        except Exception as exc:
            raise wrapf(exc, "load failed for %r", path)

Every wrap function returns ``None`` for a ``None`` error, so call sites may
write ``return wrap(err)`` unconditionally.
"""

from typing import Iterator, Optional, Type, Union

from .caller import Caller, capture


class ChainError(Exception):
    """An error carrying a message, an optional cause and its creation site.

    Attributes:
        message: The message added by this link, possibly empty.
        cause: The wrapped error, if any. Also exposed as ``__cause__``.
        caller: Where this link was created.
    """

    def __init__(
        self,
        message: str = "",
        cause: Optional[BaseException] = None,
        caller: Optional[Caller] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.caller = caller if caller is not None else Caller.unknown()
        if cause is not None:
            self.__cause__ = cause

    def unwrap(self) -> Optional[BaseException]:
        """Return the wrapped cause, if any."""
        return self.cause

    def __str__(self) -> str:
        if self.message and self.cause is not None:
            return f"{self.message}: {self.cause}"
        if self.cause is not None:
            return str(self.cause)
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def __format__(self, spec: str) -> str:
        """Render the error.

        Formats:
            ``s``  the message (same as ``str``)
            ``q``  the message in double quotes
            ``v``  ``short caller: message``
            ``+v`` causes first, then this link's message and stack dump
        """
        if spec in ("", "s"):
            return str(self)
        if spec == "q":
            return f'"{self}"'
        if spec == "v":
            return f"{self.caller.short}: {self}"
        if spec == "+v":
            return self.format_full()
        raise ValueError(f"unsupported error format {spec!r}")

    def format_full(self) -> str:
        """Render the whole chain, original cause first."""
        parts = []
        if isinstance(self.cause, ChainError):
            parts.append(self.cause.format_full())
        elif self.cause is not None:
            parts.append(str(self.cause))
        if self.message:
            parts.append(self.message)
        stack = self.caller.format_stack()
        if stack:
            parts.append(stack)
        return "\n".join(parts)

    def stack_trace(self) -> tuple:
        """Return the captured frames, innermost first."""
        return self.caller.stack


class SafeError(ChainError):
    """A chain error whose message may be presented to end users."""


def _message(message: str, args: tuple) -> str:
    return message % args if args else message


def errorf(message: str, *args) -> ChainError:
    """Create a new error with a formatted message.

    The message is formatted with ``%``-style ``args``, as ``logging`` does.

    Example:
        >>> err = errorf("expected %d items", 3)
        >>> str(err)
        'expected 3 items'
    """
    return ChainError(_message(message, args), caller=capture(1))


def wrap(err: Optional[BaseException]) -> Optional[BaseException]:
    """Record the current call site on ``err``.

    Returns ``None`` for ``None``. If ``err`` is a ChainError whose stack
    already contains the caller of ``wrap`` (apart from the call site itself),
    ``err`` is returned unchanged; otherwise a new message-less layer is added.
    """
    if err is None:
        return None
    return _wrap(err, capture(1))


def wrap_skip(err: Optional[BaseException], skip: int) -> Optional[BaseException]:
    """Like ``wrap``, but take the call site ``skip`` frames further out.

    Helpers that forward an error on behalf of their caller use ``skip=1`` so
    the recorded site is the helper's caller rather than the helper.
    """
    if err is None:
        return None
    return _wrap(err, capture(skip + 1))


def _wrap(err: BaseException, caller: Caller) -> BaseException:
    # adjacent captures differ only in the call-site frame
    if isinstance(err, ChainError) and err.caller.includes(caller, 1):
        return err
    return ChainError(cause=err, caller=caller)


def wrapf(err: Optional[BaseException], message: str, *args) -> Optional[ChainError]:
    """Wrap ``err`` with a formatted message. Always adds a layer."""
    if err is None:
        return None
    return ChainError(_message(message, args), cause=err, caller=capture(1))


def drop(err: Optional[BaseException], n: int) -> Optional[BaseException]:
    """Return a copy of a chain error without its ``n`` innermost frames.

    Non-chain errors and ``None`` are returned unchanged.
    """
    if not isinstance(err, ChainError):
        return err
    dropped = type(err)(err.message, err.cause, err.caller.drop(n))
    dropped.__traceback__ = err.__traceback__
    return dropped


def safef(message: str, *args) -> SafeError:
    """Create a new safe error with a formatted message."""
    return SafeError(_message(message, args), caller=capture(1))


def mark_safe(err: Optional[BaseException]) -> Optional[SafeError]:
    """Wrap ``err`` in a layer marking the chain as safe to present."""
    if err is None:
        return None
    return SafeError(cause=err, caller=capture(1))


def chain(err: Optional[BaseException]) -> Iterator[BaseException]:
    """Yield ``err`` and every error it wraps, outermost first.

    Chain errors are followed through ``unwrap()``, other exceptions through
    ``__cause__``.
    """
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        if isinstance(err, ChainError):
            err = err.unwrap()
        else:
            err = err.__cause__


def as_safe(err: Optional[BaseException]) -> Optional[SafeError]:
    """Return the first safe error in the chain of ``err``, or ``None``."""
    for link in chain(err):
        if isinstance(link, SafeError):
            return link
    return None


def is_safe(err: Optional[BaseException]) -> bool:
    """Return whether any link in the chain of ``err`` is marked safe."""
    return as_safe(err) is not None


def matches(
    err: Optional[BaseException],
    target: Union[BaseException, Type[BaseException]],
) -> bool:
    """Return whether any link is ``target`` or an instance of it.

    Args:
        err: The error to inspect.
        target: An exception instance (compared by identity) or class.
    """
    for link in chain(err):
        if isinstance(target, type):
            if isinstance(link, target):
                return True
        elif link is target:
            return True
    return False
