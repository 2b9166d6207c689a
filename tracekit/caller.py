"""caller.py - Call-stack capture for error chains and traced spans.

A Caller records where in the program something happened: the short and full
name of the function, its file and line, and a bounded copy of the stack that
led there. Error chains use the stack to decide whether wrapping an error adds
information (see ``Caller.includes``); spans use the short name as a default
label.

Stack layout:
    ``Caller.stack[0]`` is the innermost (most recent) frame. Each Frame carries
    an ``address`` - the code object plus the offset of the instruction the
    frame was executing - which plays the role of a raw program counter: two
    captures taken while an outer function is paused on the same call produce
    equal addresses for that outer frame.

Capture is best-effort: if the interpreter cannot provide a frame, an
``unknown`` caller is returned instead of raising.
"""

import sys
from typing import Iterable, NamedTuple, Tuple

DEFAULT_LIMIT = 32


class Frame(NamedTuple):
    """One entry of a captured stack.

    Attributes:
        function: Qualified name of the function, e.g. ``"Service.pay"``.
        module: ``__name__`` of the defining module.
        file: Source file path.
        line: Line being executed when the frame was captured.
        address: ``(code object, instruction offset)``, used for comparisons.
    """

    function: str
    module: str
    file: str
    line: int
    address: tuple

    @classmethod
    def of(cls, frame) -> "Frame":
        """Build a Frame from a live interpreter frame."""
        code = frame.f_code
        return cls(
            function=getattr(code, "co_qualname", code.co_name),
            module=frame.f_globals.get("__name__", ""),
            file=code.co_filename,
            line=frame.f_lineno or 0,
            address=(code, frame.f_lasti),
        )

    @classmethod
    def of_traceback(cls, tb) -> "Frame":
        """Build a Frame from a traceback entry (the frame may have finished)."""
        frame = tb.tb_frame
        code = frame.f_code
        return cls(
            function=getattr(code, "co_qualname", code.co_name),
            module=frame.f_globals.get("__name__", ""),
            file=code.co_filename,
            line=tb.tb_lineno or 0,
            address=(code, tb.tb_lasti),
        )

    @property
    def full(self) -> str:
        """Module-qualified function name."""
        if self.module:
            return f"{self.module}.{self.function}"
        return self.function

    @property
    def short(self) -> str:
        """Function name qualified by the last module path component only."""
        if self.module:
            return f"{self.module.rpartition('.')[2]}.{self.function}"
        return self.function


class Caller(NamedTuple):
    """Identity of a stack location plus the stack that led to it.

    Attributes:
        short: ``module.qualname`` of the innermost frame.
        full: ``package.module.qualname`` of the innermost frame.
        file: Source file of the innermost frame.
        line: Line of the innermost frame.
        stack: Captured frames, innermost first. Never mutated.
        depth: Number of frames between the capture point and the outermost
            frame, counted before the ``limit`` truncated ``stack``.

    Example:
        >>> caller = capture()
        >>> str(caller)             # short name
        'test_caller.test_example'
        >>> format(caller, "v")     # full name
        'tests.test_caller.test_example'
    """

    short: str
    full: str
    file: str
    line: int
    stack: Tuple[Frame, ...]
    depth: int

    @classmethod
    def unknown(cls) -> "Caller":
        """Placeholder returned when the stack cannot be resolved."""
        return cls("unknown", "unknown", "", 0, (), 0)

    @classmethod
    def from_frames(cls, frames: Iterable[Frame], depth: int = -1) -> "Caller":
        """Build a caller from explicit frames, innermost first.

        Args:
            frames: The frames to record.
            depth: Total depth of the stack the frames were taken from.
                Defaults to the number of frames given.
        """
        stack = tuple(frames)
        if not stack:
            return cls.unknown()
        if depth < len(stack):
            depth = len(stack)
        top = stack[0]
        return cls(top.short, top.full, top.file, top.line, stack, depth)

    def includes(self, other: "Caller", ignore: int = 0) -> bool:
        """Return whether ``other``'s stack is contained in this caller's stack.

        Both stacks are aligned at their outermost frame and compared inward.
        The ``ignore`` innermost frames of ``other`` are left out, which is how
        two captures taken one call apart are recognised: they share every
        frame except the call site.

        Frames are aligned by their height above the outermost frame, so stacks
        truncated by the capture limit still line up. When frames remain to be
        compared but none of them were captured by both callers, the answer is
        ``False``.

        Args:
            other: The caller to look for.
            ignore: Number of innermost frames of ``other`` to skip.

        Returns:
            True if every compared address matches.
        """
        if other.depth > self.depth:
            return False

        top = other.depth - ignore
        if top <= 0:
            return True

        lowest = max(self.depth - len(self.stack), other.depth - len(other.stack))
        if lowest >= top:
            return False

        for height in range(lowest, top):
            mine = self.stack[self.depth - 1 - height]
            theirs = other.stack[other.depth - 1 - height]
            if mine.address != theirs.address:
                return False

        return True

    def drop(self, n: int) -> "Caller":
        """Return a caller without its ``n`` innermost frames.

        Identity fields are re-resolved from the new innermost frame. Dropping
        is a no-op when ``n`` is not positive or would empty the stack.
        """
        if n <= 0 or n >= len(self.stack):
            return self
        return Caller.from_frames(self.stack[n:], self.depth - n)

    def format_stack(self) -> str:
        """Render the captured stack, two lines per frame."""
        lines = []
        for frame in self.stack:
            lines.append(f"> {frame.full}")
            lines.append(f">   {frame.file}:{frame.line}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.short

    def __format__(self, spec: str) -> str:
        # s: short, q: "short", v: full, +v: stack
        if spec in ("", "s"):
            return self.short
        if spec == "q":
            return f'"{self.short}"'
        if spec == "v":
            return self.full
        if spec == "+v":
            return self.format_stack()
        raise ValueError(f"unsupported caller format {spec!r}")


def capture(skip: int = 0, limit: int = 0) -> Caller:
    """Capture the caller of this function.

    Args:
        skip: Number of additional frames to skip. ``0`` identifies the function
            calling ``capture``; ``1`` identifies that function's caller.
        limit: Maximum number of frames to keep. ``0`` or less selects the
            default of 32.

    Returns:
        The captured Caller, or ``Caller.unknown()`` if the requested frame
        does not exist.
    """
    if limit <= 0:
        limit = DEFAULT_LIMIT

    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return Caller.unknown()

    stack = []
    depth = 0
    while frame is not None:
        if depth < limit:
            stack.append(Frame.of(frame))
        depth += 1
        frame = frame.f_back

    return Caller.from_frames(stack, depth)
