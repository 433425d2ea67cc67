"""Connection resource kind."""

from dataclasses import dataclass
from typing import Any, List

from resources.base import ResourceKind
from resources.diff import json_equivalent, loads_json
from resources.fields import UNSET, FieldRole, FieldSpec, Settable


@dataclass
class ConnectionSpec:
    """Desired state of an Airflow connection."""

    connection_id: str
    conn_type: str
    description: Settable[str] = UNSET
    host: Settable[str] = UNSET
    login: Settable[str] = UNSET
    schema: Settable[str] = UNSET
    port: Settable[int] = UNSET
    password: Settable[str] = UNSET
    extra: Settable[str] = UNSET


def _nullable(type_name: str, **extra: Any) -> dict:
    return {"type": [type_name, "null"], **extra}


class ConnectionKind(ResourceKind):
    """
    Connections are created with POST and replaced with PATCH.

    The password is write-only: the service does not return it, so the
    last known local value is kept on read. ``extra`` holds strict JSON
    text and is compared by parsed value.

    Adopting an existing connection whose desired spec sets a password
    always costs one update, since there is no known remote password to
    compare against.
    """

    collection = "connections"
    identifier_field = "connection_id"
    spec_class = ConnectionSpec
    field_map = {
        "connection_id": FieldSpec(FieldRole.IDENTIFIER),
        "conn_type": FieldSpec(FieldRole.REQUIRED),
        "description": FieldSpec(FieldRole.OPTIONAL),
        "host": FieldSpec(FieldRole.OPTIONAL),
        "login": FieldSpec(FieldRole.OPTIONAL),
        "schema": FieldSpec(FieldRole.OPTIONAL),
        "port": FieldSpec(FieldRole.OPTIONAL),
        "password": FieldSpec(FieldRole.OPTIONAL, secret=True),
        "extra": FieldSpec(FieldRole.OPTIONAL, equivalent=json_equivalent),
    }
    schema = {
        "type": "object",
        "required": ["connection_id", "conn_type"],
        "additionalProperties": False,
        "properties": {
            "connection_id": {
                "type": "string",
                "minLength": 1,
                "maxLength": 200,
                "pattern": r"^[\w.-]+$",
            },
            "conn_type": {"type": "string", "minLength": 1},
            "description": _nullable("string"),
            "host": _nullable("string"),
            "login": _nullable("string"),
            "schema": _nullable("string"),
            "port": _nullable("integer", minimum=0, maximum=65535),
            "password": _nullable("string"),
            "extra": _nullable("string"),
        },
    }

    @property
    def name(self) -> str:
        return "connection"

    def check(self, spec: ConnectionSpec) -> List[str]:
        if isinstance(spec.extra, str) and spec.extra.strip():
            try:
                loads_json(spec.extra)
            except ValueError as e:
                return [f"extra: must be valid JSON ({e})"]
        return []
