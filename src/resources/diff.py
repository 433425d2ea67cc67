"""
Diff - Field-level comparison between desired and observed state.

The equivalence predicates decide only whether a field needs an update;
the value written is always the literal value from the desired spec.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from resources.fields import UNSET, FieldSpec, is_empty

logger = logging.getLogger(__name__)

_NOT_PARSED = object()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def loads_json(text: str) -> Any:
    """Parse strict JSON text; NaN and Infinity are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def _parse_json(value: Any) -> Any:
    if not isinstance(value, str):
        return _NOT_PARSED
    try:
        return loads_json(value)
    except ValueError:
        return _NOT_PARSED


def _structurally_equal(left: Any, right: Any) -> bool:
    # bool is an int subclass in Python; JSON true and 1 are different values
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(_structurally_equal(left[k], right[k]) for k in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(_structurally_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (dict, list)) or isinstance(right, (dict, list)):
        return False
    return left == right


def json_equivalent(old: Any, new: Any) -> bool:
    """
    Compare two structured-text (JSON) values by parsed value.

    Identical trimmed literals are always equivalent. Otherwise values
    that differ only in whitespace or key order are equivalent, and a
    side that fails to parse as strict JSON makes the values differ.

    Args:
        old: The stored (observed) representation.
        new: The incoming (desired) representation.

    Returns:
        True if the two values should be treated as "no diff".
    """
    if is_empty(old) and is_empty(new):
        return True
    if is_empty(old) or is_empty(new):
        return False
    if str(old).strip() == str(new).strip():
        return True

    parsed_old = _parse_json(old)
    parsed_new = _parse_json(new)
    if parsed_old is _NOT_PARSED or parsed_new is _NOT_PARSED:
        return False

    return _structurally_equal(parsed_old, parsed_new)


@dataclass
class FieldChange:
    """A managed field whose observed value differs from the desired one."""

    name: str
    observed: Any
    desired: Any


def compute_diff(
    field_map: Dict[str, FieldSpec],
    desired: Dict[str, Any],
    observed: Dict[str, Any],
) -> List[FieldChange]:
    """
    Compute the managed fields that need an update.

    An optional field missing from ``desired`` is compared against the
    empty value, so a field set remotely but unspecified locally shows up
    as a change (it has to be cleared).

    Args:
        field_map: The kind's FieldMap.
        desired: Desired field values keyed by local name.
        observed: Observed field values keyed by local name.

    Returns:
        List of FieldChange, empty when the remote object is converged.
    """
    changes = []
    for name, spec in field_map.items():
        if not spec.managed:
            continue
        wanted = desired.get(name, UNSET)
        if spec.secret and is_empty(wanted):
            # unset secrets are not sent on update
            continue
        current = observed.get(name)
        if not spec.equivalent(current, wanted):
            changes.append(FieldChange(name=name, observed=current, desired=wanted))
    return changes
