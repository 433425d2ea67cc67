"""Pool resource kind."""

from dataclasses import dataclass

from resources.base import ResourceKind
from resources.fields import UNSET, FieldRole, FieldSpec, Settable

DEFAULT_POOL = "default_pool"


@dataclass
class PoolSpec:
    """Desired state of an Airflow scheduling pool."""

    name: str
    slots: int
    description: Settable[str] = UNSET


class PoolKind(ResourceKind):
    """
    Pools limit task concurrency. Slot usage counters are server-computed.

    Updates name the written attributes in an update mask. The built-in
    ``default_pool`` is never deleted.
    """

    collection = "pools"
    identifier_field = "name"
    spec_class = PoolSpec
    field_map = {
        "name": FieldSpec(FieldRole.IDENTIFIER),
        "slots": FieldSpec(FieldRole.REQUIRED),
        "description": FieldSpec(FieldRole.OPTIONAL),
        "occupied_slots": FieldSpec(FieldRole.COMPUTED),
        "used_slots": FieldSpec(FieldRole.COMPUTED, remote_name="running_slots"),
        "queued_slots": FieldSpec(FieldRole.COMPUTED),
        "open_slots": FieldSpec(FieldRole.COMPUTED),
    }
    schema = {
        "type": "object",
        "required": ["name", "slots"],
        "additionalProperties": False,
        "properties": {
            "name": {"type": "string", "minLength": 1, "maxLength": 256},
            # -1 means unlimited
            "slots": {"type": "integer", "minimum": -1},
            "description": {"type": ["string", "null"]},
        },
    }
    reserved_identifiers = frozenset({DEFAULT_POOL})
    identifier_in_update = False
    use_update_mask = True

    @property
    def name(self) -> str:
        return "pool"
