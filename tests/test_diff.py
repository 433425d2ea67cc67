"""Unit tests for field tables and diff computation."""

import pytest

from resources.diff import compute_diff, json_equivalent, loads_json
from resources.fields import (
    CLEAR,
    UNSET,
    FieldRole,
    FieldSpec,
    default_equivalent,
    is_empty,
    is_present,
)

# ==================== Tri-state values ====================


class TestSentinels:
    """Tests for the UNSET and CLEAR markers."""

    def test_markers_are_not_present(self):
        assert not is_present(UNSET)
        assert not is_present(CLEAR)
        assert is_present("")
        assert is_present(0)
        assert is_present(False)

    def test_empty_values(self):
        assert is_empty(UNSET)
        assert is_empty(CLEAR)
        assert is_empty(None)
        assert is_empty("")
        assert not is_empty(0)
        assert not is_empty(False)

    def test_repr(self):
        assert repr(UNSET) == "UNSET"
        assert repr(CLEAR) == "CLEAR"

    def test_default_equivalent_treats_empties_alike(self):
        assert default_equivalent(None, UNSET)
        assert default_equivalent("", CLEAR)
        assert not default_equivalent("x", UNSET)
        assert not default_equivalent(0, None)
        assert default_equivalent(5, 5)


class TestFieldSpec:
    """Tests for FieldSpec."""

    def test_managed_roles(self):
        assert FieldSpec(FieldRole.REQUIRED).managed
        assert FieldSpec(FieldRole.OPTIONAL).managed
        assert not FieldSpec(FieldRole.IDENTIFIER).managed
        assert not FieldSpec(FieldRole.COMPUTED).managed
        assert not FieldSpec(FieldRole.LOCAL).managed

    def test_wire_name(self):
        assert FieldSpec(FieldRole.COMPUTED).wire_name("slots") == "slots"
        assert (
            FieldSpec(FieldRole.COMPUTED, remote_name="running_slots").wire_name(
                "used_slots"
            )
            == "running_slots"
        )


# ==================== JSON equivalence ====================


class TestJsonEquivalent:
    """Tests for the structured-text equivalence predicate."""

    def test_whitespace_and_key_order(self):
        assert json_equivalent('{"a": 1, "b": 2}', '{ "b":2,\n "a":1 }')

    def test_nested_values(self):
        assert json_equivalent('{"a": {"x": [1, 2]}}', '{"a":{"x":[1,2]}}')
        assert not json_equivalent('{"a": [1, 2]}', '{"a": [2, 1]}')

    def test_different_values(self):
        assert not json_equivalent('{"a": 1}', '{"a": 2}')
        assert not json_equivalent('{"a": 1}', '{"a": 1, "b": null}')

    def test_booleans_are_not_numbers(self):
        assert not json_equivalent('{"a": true}', '{"a": 1}')
        assert json_equivalent('{"a": true}', '{"a":true}')

    def test_integer_and_float_are_equal(self):
        assert json_equivalent('{"a": 1}', '{"a": 1.0}')

    def test_both_empty(self):
        assert json_equivalent(None, "")
        assert json_equivalent(UNSET, None)
        assert json_equivalent("", CLEAR)

    def test_one_side_empty(self):
        assert not json_equivalent(None, "{}")
        assert not json_equivalent('{"a": 1}', UNSET)

    def test_unparseable_falls_back_to_trimmed_text(self):
        assert json_equivalent("not json ", " not json")
        assert not json_equivalent("not json", '{"a": 1}')

    def test_identical_literals_with_non_finite_numbers(self):
        assert json_equivalent('{"a": NaN}', '{"a": NaN}')
        assert json_equivalent('{"a": Infinity} ', '{"a": Infinity}')

    def test_non_finite_numbers_are_not_json(self):
        assert not json_equivalent('{"a": NaN}', '{"a":NaN}')
        with pytest.raises(ValueError, match="NaN"):
            loads_json('{"a": NaN}')

    def test_is_symmetric(self):
        pairs = [
            ('{"a": 1}', '{"a":1}'),
            ('{"a": true}', '{"a": 1}'),
            (None, "{}"),
            ("x", " x"),
        ]
        for left, right in pairs:
            assert json_equivalent(left, right) == json_equivalent(right, left)


# ==================== compute_diff ====================

FIELD_MAP = {
    "name": FieldSpec(FieldRole.IDENTIFIER),
    "slots": FieldSpec(FieldRole.REQUIRED),
    "description": FieldSpec(FieldRole.OPTIONAL),
    "password": FieldSpec(FieldRole.OPTIONAL, secret=True),
    "extra": FieldSpec(FieldRole.OPTIONAL, equivalent=json_equivalent),
    "open_slots": FieldSpec(FieldRole.COMPUTED),
    "keep": FieldSpec(FieldRole.LOCAL, default=False),
}


class TestComputeDiff:
    """Tests for compute_diff."""

    def test_no_changes(self):
        desired = {"name": "p", "slots": 2, "description": UNSET, "extra": '{"a":1}'}
        observed = {
            "name": "p",
            "slots": 2,
            "description": None,
            "extra": '{"a": 1}',
            "open_slots": 2,
        }
        assert compute_diff(FIELD_MAP, desired, observed) == []

    def test_changed_required_field(self):
        changes = compute_diff(FIELD_MAP, {"slots": 3}, {"slots": 2})
        assert [(c.name, c.observed, c.desired) for c in changes] == [("slots", 2, 3)]

    def test_unspecified_optional_set_remotely(self):
        changes = compute_diff(
            FIELD_MAP, {"slots": 1}, {"slots": 1, "description": "remote"}
        )
        assert [c.name for c in changes] == ["description"]

    def test_computed_and_local_fields_ignored(self):
        changes = compute_diff(
            FIELD_MAP,
            {"slots": 1, "keep": True},
            {"slots": 1, "open_slots": 99, "keep": False},
        )
        assert changes == []

    def test_unset_secret_ignored(self):
        changes = compute_diff(FIELD_MAP, {"slots": 1}, {"slots": 1, "password": "x"})
        assert changes == []

    def test_set_secret_compared(self):
        changes = compute_diff(
            FIELD_MAP, {"slots": 1, "password": "new"}, {"slots": 1, "password": None}
        )
        assert [c.name for c in changes] == ["password"]
