"""test_errors.py - Unit tests for error chains and the safety marker.

Covers:
    - ChainError message rules for str()
    - Formatting verbs s, q, v and +v
    - errorf / wrap / wrapf / drop
    - Wrap deduplication along a single call path
    - Safe errors: safef, mark_safe, as_safe, is_safe
    - Chain walking and matching
"""

import pytest

from tracekit.errors import (
    ChainError,
    SafeError,
    as_safe,
    chain,
    drop,
    errorf,
    is_safe,
    mark_safe,
    matches,
    safef,
    wrap,
    wrapf,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make():
    return errorf("fail")


def _create():
    return _make()


def _forward(err):
    return wrap(err)


def _level3():
    return errorf("fail")


def _level2():
    return wrap(_level3())


def _level1():
    return wrap(_level2())


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class TestMessage:
    def test_message_and_cause_are_joined(self):
        """A link with both a message and a cause reads 'message: cause'."""
        err = ChainError("loading", cause=ValueError("bad row"))
        assert str(err) == "loading: bad row"

    def test_cause_only(self):
        """A message-less link shows its cause."""
        err = ChainError(cause=ValueError("bad row"))
        assert str(err) == "bad row"

    def test_message_only(self):
        err = ChainError("loading")
        assert str(err) == "loading"

    def test_empty(self):
        assert str(ChainError()) == ""

    def test_cause_is_exposed_to_python(self):
        """The cause doubles as __cause__ so tracebacks show the chain."""
        cause = ValueError("bad row")
        err = ChainError(cause=cause)
        assert err.unwrap() is cause
        assert err.__cause__ is cause

    def test_repr(self):
        assert repr(ChainError("loading")) == "ChainError('loading')"

    def test_chain_error_can_be_raised(self):
        with pytest.raises(ChainError, match="expected 3"):
            raise errorf("expected %d", 3)


# ---------------------------------------------------------------------------
# errorf / wrapf
# ---------------------------------------------------------------------------


class TestCreate:
    def test_errorf_formats_arguments(self):
        err = errorf("expected %d items, got %s", 3, "none")
        assert str(err) == "expected 3 items, got none"

    def test_errorf_without_arguments_keeps_percent(self):
        """Without arguments the message is used verbatim."""
        assert str(errorf("100% broken")) == "100% broken"

    def test_errorf_records_call_site(self):
        err = _make()
        assert err.caller.short == "test_errors._make"
        assert err.unwrap() is None

    def test_wrapf_always_adds_a_layer(self):
        """wrapf adds a message even where wrap would deduplicate."""
        err = _make()
        wrapped = wrapf(err, "importing %s", "rows.csv")
        assert wrapped is not err
        assert wrapped.unwrap() is err
        assert str(wrapped) == "importing rows.csv: fail"

    def test_wrap_functions_pass_none_through(self):
        assert wrap(None) is None
        assert wrapf(None, "ignored") is None
        assert mark_safe(None) is None


# ---------------------------------------------------------------------------
# wrap deduplication
# ---------------------------------------------------------------------------


class TestWrap:
    def test_nested_wraps_along_one_path_collapse(self):
        """Wrapping on the way up the stack that created the error is a no-op."""
        err = wrap(_level1())
        assert isinstance(err, ChainError)
        assert err.message == "fail"
        assert err.unwrap() is None
        assert err.caller.short == "test_errors._level3"

    def test_full_format_of_collapsed_chain_has_one_stack(self):
        """Three nested wraps render exactly one stack segment."""
        err = wrap(_level1())
        rendered = format(err, "+v")
        assert rendered.count("test_errors._level3") == 1
        assert rendered.startswith("fail\n> ")

    def test_wrap_from_other_path_adds_layer(self):
        """Wrapping outside the error's own stack records a new site."""
        err = _create()
        wrapped = _forward(err)
        assert wrapped is not err
        assert wrapped.unwrap() is err
        assert wrapped.caller.short == "test_errors._forward"
        assert str(wrapped) == "fail"

    def test_wrap_foreign_error(self):
        """A non-chain exception always gets a layer carrying the call site."""
        cause = KeyError("id")
        wrapped = wrap(cause)
        assert isinstance(wrapped, ChainError)
        assert wrapped.unwrap() is cause
        assert wrapped.caller.short == (
            "test_errors.TestWrap.test_wrap_foreign_error"
        )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormat:
    def test_short_verbs(self):
        err = _make()
        assert f"{err}" == "fail"
        assert f"{err:s}" == "fail"
        assert f"{err:q}" == '"fail"'
        assert f"{err:v}" == "test_errors._make: fail"

    def test_full_format_puts_original_cause_first(self):
        """+v renders the cause, then the wrapping message and its stack."""
        err = _make()
        wrapped = wrapf(err, "outer")
        lines = format(wrapped, "+v").split("\n")
        assert lines[0] == "fail"
        assert lines[1] == f"> {err.caller.full}"
        outer_index = lines.index("outer")
        assert outer_index > 1
        assert lines[outer_index + 1] == f"> {wrapped.caller.full}"

    def test_full_format_of_foreign_cause(self):
        """A foreign cause contributes its message only."""
        wrapped = wrap(ValueError("boom"))
        lines = format(wrapped, "+v").split("\n")
        assert lines[0] == "boom"
        assert lines[1] == f"> {wrapped.caller.full}"

    def test_unknown_verb_raises(self):
        with pytest.raises(ValueError):
            format(_make(), "d")

    def test_stack_trace_is_caller_stack(self):
        err = _make()
        assert err.stack_trace() == err.caller.stack


# ---------------------------------------------------------------------------
# drop()
# ---------------------------------------------------------------------------


class TestDrop:
    def test_drop_removes_innermost_frames(self):
        err = _make()
        dropped = drop(err, 1)
        assert dropped is not err
        assert dropped.message == "fail"
        assert dropped.caller.short == "test_errors.TestDrop.test_drop_removes_innermost_frames"

    def test_drop_keeps_error_type(self):
        dropped = drop(safef("visible"), 1)
        assert isinstance(dropped, SafeError)

    def test_drop_leaves_foreign_errors_alone(self):
        cause = ValueError("x")
        assert drop(cause, 1) is cause
        assert drop(None, 1) is None


# ---------------------------------------------------------------------------
# Safety marker
# ---------------------------------------------------------------------------


class TestSafe:
    def test_safef_creates_safe_error(self):
        err = safef("card %s declined", "visa")
        assert isinstance(err, SafeError)
        assert str(err) == "card visa declined"
        assert is_safe(err)

    def test_as_safe_returns_the_marked_link(self):
        """The first safe link is returned by identity, not copied."""
        e1 = errorf("db unavailable")
        e2 = mark_safe(e1)
        e3 = wrapf(e2, "handler")
        assert as_safe(e3) is e2
        assert is_safe(e3)

    def test_unmarked_chain_is_not_safe(self):
        e1 = errorf("db unavailable")
        e2 = wrapf(e1, "handler")
        assert as_safe(e2) is None
        assert not is_safe(e2)
        assert not is_safe(None)

    def test_wrapping_a_safe_error_keeps_it_findable(self):
        err = _forward(safef("visible"))
        assert isinstance(as_safe(err), SafeError)


# ---------------------------------------------------------------------------
# chain() and matches()
# ---------------------------------------------------------------------------


class TestChain:
    def test_chain_walks_outermost_first(self):
        e1 = errorf("a")
        e2 = mark_safe(e1)
        e3 = wrapf(e2, "c")
        assert list(chain(e3)) == [e3, e2, e1]

    def test_chain_follows_foreign_causes(self):
        inner = KeyError("k")
        outer = ValueError("v")
        outer.__cause__ = inner
        wrapped = wrapf(outer, "w")
        assert list(chain(wrapped)) == [wrapped, outer, inner]

    def test_chain_of_none_is_empty(self):
        assert list(chain(None)) == []

    def test_matches_instance_by_identity(self):
        e1 = errorf("a")
        e3 = wrapf(mark_safe(e1), "c")
        assert matches(e3, e1)
        assert not matches(e3, errorf("a"))

    def test_matches_class(self):
        wrapped = wrapf(ValueError("x"), "y")
        assert matches(wrapped, ValueError)
        assert matches(wrapped, ChainError)
        assert not matches(wrapped, KeyError)
