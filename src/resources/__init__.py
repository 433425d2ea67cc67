"""
Reconciliation core for Airflow resources.

Converges connections, DAGs, pools and variables held by an Airflow
deployment toward declared desired state.
"""

from resources.base import ObservedState, ResourceKind
from resources.errors import (
    AdoptionError,
    ReconcileError,
    RemoteReadError,
    RemoteWriteError,
    StateMismatchError,
    ValidationError,
)
from resources.fields import CLEAR, UNSET, FieldRole, FieldSpec
from resources.reconciler import Reconciler
from resources.registry import ResourceRegistry, build_registry

__all__ = [
    "AdoptionError",
    "CLEAR",
    "FieldRole",
    "FieldSpec",
    "ObservedState",
    "Reconciler",
    "ReconcileError",
    "RemoteReadError",
    "RemoteWriteError",
    "ResourceKind",
    "ResourceRegistry",
    "StateMismatchError",
    "UNSET",
    "ValidationError",
    "build_registry",
]
