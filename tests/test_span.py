"""test_span.py - Unit tests for span records and attribute conversion.

Covers:
    - convert_value() for every attribute kind and the JSON fallback
    - Values json rejects (mixed or tuple keys, cycles) never raise
    - Attribute.render()
    - SpanRecord duration default, is_root and immutability
"""

import dataclasses
import json

import pytest

from tracekit.span import (
    Attribute,
    AttrKind,
    SpanRecord,
    convert_attributes,
    convert_value,
)
from tracekit.testing import Tester
from tracekit.tracer import Span


class TestConvertValue:
    def test_bool_is_checked_before_int(self):
        assert convert_value(True) == Attribute(AttrKind.BOOL, True)

    def test_scalars(self):
        assert convert_value(3) == Attribute(AttrKind.INT, 3)
        assert convert_value(2.5) == Attribute(AttrKind.FLOAT, 2.5)
        assert convert_value("bar") == Attribute(AttrKind.STRING, "bar")

    def test_other_values_become_json(self):
        attribute = convert_value({"b": 1, "a": [1, 2]})
        assert attribute.kind is AttrKind.JSON
        assert attribute.value == '{"a": [1, 2], "b": 1}'

    def test_unserialisable_objects_use_str(self):
        class Point:
            def __str__(self):
                return "(1, 2)"

        assert convert_value(Point()) == Attribute(AttrKind.JSON, '"(1, 2)"')

    def test_mixed_key_types_still_encode(self):
        attribute = convert_value({1: "a", "b": 2})
        assert attribute == Attribute(AttrKind.JSON, '{"1": "a", "b": 2}')

    def test_tuple_keys_fall_back_to_repr(self):
        value = {(1, 2): "x"}
        attribute = convert_value(value)
        assert attribute.kind is AttrKind.JSON
        assert json.loads(attribute.value) == repr(value)

    def test_circular_list_falls_back_to_repr(self):
        value = []
        value.append(value)
        assert convert_value(value) == Attribute(AttrKind.JSON, '"[[...]]"')

    def test_tagging_awkward_values_does_not_raise(self):
        tester = Tester()
        with Span("job", collector=tester) as span:
            span.tag("payload", {1: "a", "b": 2})
            span.attach("batch", {"keys": {(1, 2): "x"}})

        record = tester.spans[0]
        assert record.attributes["payload"].value == '{"1": "a", "b": 2}'
        assert record.events[0].attributes["keys"].kind is AttrKind.JSON

    def test_none_is_json_null(self):
        assert convert_value(None) == Attribute(AttrKind.JSON, "null")

    def test_attribute_passes_through(self):
        attribute = Attribute(AttrKind.STRING, "x")
        assert convert_value(attribute) is attribute

    def test_convert_attributes(self):
        assert convert_attributes(None) == {}
        assert convert_attributes({"n": 1}) == {"n": Attribute(AttrKind.INT, 1)}


class TestAttributeRender:
    def test_render(self):
        assert convert_value("bar").render() == '"bar"'
        assert convert_value(False).render() == "false"
        assert convert_value(7).render() == "7"
        assert convert_value(1.5).render() == "1.5"
        assert convert_value([1]).render() == "[1]"


class TestSpanRecord:
    def test_duration_defaults_to_end_minus_start(self):
        record = SpanRecord(id="a", trace_id="t", parent_id="", name="a", start=10, end=35)
        assert record.duration == 25

    def test_explicit_duration_is_kept(self):
        record = SpanRecord(
            id="", trace_id="", parent_id="", name="a", start=0, end=0, duration=100
        )
        assert record.duration == 100

    def test_is_root(self):
        root = SpanRecord(id="a", trace_id="t", parent_id="", name="a", start=0, end=1)
        child = SpanRecord(id="b", trace_id="t", parent_id="a", name="b", start=0, end=1)
        assert root.is_root
        assert not child.is_root

    def test_record_is_frozen(self):
        record = SpanRecord(id="a", trace_id="t", parent_id="", name="a", start=0, end=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.name = "b"  # type: ignore[misc]
