"""
Kind Registry - Discovery and registration of resource kinds.

Maps kind names to ResourceKind instances. Built-in kinds ship with the
package; additional kinds are discovered through the
'airflow_reconciler.kinds' entry-point group.
"""

import logging
from importlib.metadata import entry_points
from typing import Dict, List, Type

from validation import validate_kind_schema

from resources.base import ResourceKind
from resources.kinds import BUILTIN_KINDS

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "airflow_reconciler.kinds"


class ResourceRegistry:
    """Registry of resource kinds keyed by kind name."""

    def __init__(self):
        self._kinds: Dict[str, ResourceKind] = {}

    def register_kind(self, kind_class: Type[ResourceKind]) -> ResourceKind:
        """
        Register a resource kind class.

        Args:
            kind_class: The ResourceKind subclass to register

        Returns:
            The registered kind instance

        Raises:
            ValueError: If the kind's schema is not a valid JSON Schema
        """
        kind = kind_class()

        is_valid, error = validate_kind_schema(kind.schema)
        if not is_valid:
            raise ValueError(f"Resource kind '{kind.name}': {error}")

        if kind.name in self._kinds:
            logger.warning(f"Overwriting existing resource kind: {kind.name}")

        self._kinds[kind.name] = kind
        logger.debug(f"Registered resource kind: {kind.name}")
        return kind

    def get_kind(self, name: str) -> ResourceKind:
        """
        Get a registered kind by name.

        Raises:
            ValueError: If the kind name is not registered
        """
        if name not in self._kinds:
            available = ", ".join(sorted(self._kinds)) or "none"
            raise ValueError(
                f"Unknown resource kind: {name}. Available kinds: {available}"
            )
        return self._kinds[name]

    def has_kind(self, name: str) -> bool:
        return name in self._kinds

    def list_kinds(self) -> List[str]:
        return list(self._kinds.keys())

    def discover(self) -> None:
        """Register kinds published by installed packages via entry points."""
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                self.register_kind(ep.load())
            except Exception as e:
                logger.warning(f"Could not load resource kind {ep.name}: {e}")


def build_registry(discover: bool = True) -> ResourceRegistry:
    """
    Build a registry holding the built-in kinds.

    Args:
        discover: Also register kinds found via entry points.
    """
    registry = ResourceRegistry()
    for kind_class in BUILTIN_KINDS:
        registry.register_kind(kind_class)
    if discover:
        registry.discover()
    return registry
