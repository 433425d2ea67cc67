"""Variable resource kind."""

from dataclasses import dataclass

from resources.base import ResourceKind
from resources.fields import UNSET, FieldRole, FieldSpec, Settable


@dataclass
class VariableSpec:
    """Desired state of an Airflow variable."""

    key: str
    value: str
    description: Settable[str] = UNSET


class VariableKind(ResourceKind):
    """
    Variables are key/value pairs with an optional description.

    The service masks values of sensitive-looking keys on read; a masked
    value keeps the last known local value.
    """

    collection = "variables"
    identifier_field = "key"
    spec_class = VariableSpec
    field_map = {
        "key": FieldSpec(FieldRole.IDENTIFIER),
        "value": FieldSpec(FieldRole.REQUIRED, redacted=True),
        "description": FieldSpec(FieldRole.OPTIONAL),
    }
    schema = {
        "type": "object",
        "required": ["key", "value"],
        "additionalProperties": False,
        "properties": {
            "key": {"type": "string", "minLength": 1, "maxLength": 250},
            "value": {"type": "string"},
            "description": {"type": ["string", "null"]},
        },
    }

    @property
    def name(self) -> str:
        return "variable"
