"""DAG resource kind."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from resources.base import ResourceKind
from resources.fields import FieldRole, FieldSpec


@dataclass
class DagSpec:
    """Desired state of an existing DAG's metadata."""

    dag_id: str
    is_paused: bool
    delete_dag: bool = False


class DagKind(ResourceKind):
    """
    DAGs come from DAG files and can't be created through the API.

    Create and Update both patch ``is_paused`` on an existing DAG. Delete
    removes the DAG and its history only when ``delete_dag`` was set;
    otherwise the DAG is just forgotten.
    """

    collection = "dags"
    identifier_field = "dag_id"
    spec_class = DagSpec
    field_map = {
        "dag_id": FieldSpec(FieldRole.IDENTIFIER),
        "is_paused": FieldSpec(FieldRole.REQUIRED),
        "delete_dag": FieldSpec(FieldRole.LOCAL, default=False),
        "description": FieldSpec(FieldRole.COMPUTED),
        "file_token": FieldSpec(FieldRole.COMPUTED),
        "fileloc": FieldSpec(FieldRole.COMPUTED),
        "is_active": FieldSpec(FieldRole.COMPUTED),
    }
    schema = {
        "type": "object",
        "required": ["dag_id", "is_paused"],
        "additionalProperties": False,
        "properties": {
            "dag_id": {"type": "string", "minLength": 1, "maxLength": 250},
            "is_paused": {"type": "boolean"},
            "delete_dag": {"type": "boolean"},
        },
    }
    supports_create = False
    identifier_in_update = False

    @property
    def name(self) -> str:
        return "dag"

    def observe(
        self, body: Dict[str, Any], prior: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        values = super().observe(body, prior)
        values["is_active"] = not body.get("is_paused", False) and not body.get(
            "is_stale", False
        )
        return values

    def deletes_remote(self, prior: Optional[Dict[str, Any]]) -> bool:
        return bool(prior and prior.get("delete_dag"))
