"""
Field tables - Tri-state field values and per-kind field descriptions.

A desired spec holds, for every optional field, one of three states:
an explicit value, an explicit ``CLEAR``, or ``UNSET`` (not specified).
The FieldMap of a resource kind describes how each field takes part in
create, update, read and diff.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar, Union


class Sentinel:
    """Marker value that is never a real field value."""

    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False


UNSET = Sentinel("UNSET")
CLEAR = Sentinel("CLEAR")

# Mask the service substitutes for sensitive values on read
REDACTED_VALUE = "***"

T = TypeVar("T")
Settable = Union[T, Sentinel]


def is_present(value: Any) -> bool:
    """True when the value is an explicit value (not UNSET, not CLEAR)."""
    return not isinstance(value, Sentinel)


def is_empty(value: Any) -> bool:
    """True for values the remote service treats as "no value"."""
    return isinstance(value, Sentinel) or value is None or value == ""


class FieldRole(Enum):
    """How a field takes part in reconciliation."""

    IDENTIFIER = "identifier"
    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    LOCAL = "local"


def default_equivalent(old: Any, new: Any) -> bool:
    if is_empty(old) and is_empty(new):
        return True
    return old == new


@dataclass(frozen=True)
class FieldSpec:
    """
    One row of a resource kind's FieldMap.

    Attributes:
        role: How the field is written and compared.
        remote_name: Attribute name on the wire, when it differs.
        secret: Write-only field; never echoed back by the service and
            only sent on update when a non-empty value is desired.
        redacted: The service may mask the value on read; a masked value
            is treated as "not echoed".
        equivalent: Predicate deciding whether two values are the same.
        default: Value used for local-only fields when unspecified.
    """

    role: FieldRole
    remote_name: Optional[str] = None
    secret: bool = False
    redacted: bool = False
    equivalent: Callable[[Any, Any], bool] = default_equivalent
    default: Any = None

    @property
    def managed(self) -> bool:
        """Whether the field is written to the remote service."""
        return self.role in (FieldRole.REQUIRED, FieldRole.OPTIONAL)

    def wire_name(self, name: str) -> str:
        return self.remote_name or name
