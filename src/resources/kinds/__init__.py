"""Built-in resource kinds."""

from resources.kinds.connection import ConnectionKind, ConnectionSpec
from resources.kinds.dag import DagKind, DagSpec
from resources.kinds.pool import DEFAULT_POOL, PoolKind, PoolSpec
from resources.kinds.variable import VariableKind, VariableSpec

BUILTIN_KINDS = [ConnectionKind, DagKind, PoolKind, VariableKind]

__all__ = [
    "BUILTIN_KINDS",
    "ConnectionKind",
    "ConnectionSpec",
    "DagKind",
    "DagSpec",
    "DEFAULT_POOL",
    "PoolKind",
    "PoolSpec",
    "VariableKind",
    "VariableSpec",
]
