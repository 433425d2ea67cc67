"""
State Store - Persisted identifiers and observed state, keyed by address.

The store belongs to the CLI; the reconciler only ever sees the
identifier and ObservedState passed in and returned.
"""

import json
import logging
import os
from typing import Dict, List, Optional

from resources.base import ObservedState

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateStore:
    """JSON file mapping resource address -> ObservedState."""

    def __init__(self, path: str):
        self.path = path
        self._entries: Dict[str, ObservedState] = {}

    def load(self) -> None:
        """Load the state file; a missing file is an empty state."""
        if not os.path.exists(self.path):
            self._entries = {}
            return

        with open(self.path, "r") as f:
            data = json.load(f)

        version = data.get("version")
        if version != STATE_VERSION:
            raise ValueError(
                f"{self.path}: unsupported state version {version!r}, "
                f"expected {STATE_VERSION}"
            )
        self._entries = {
            address: ObservedState.from_dict(entry)
            for address, entry in data.get("resources", {}).items()
        }
        logger.debug(f"Loaded {len(self._entries)} state entries from {self.path}")

    def save(self) -> None:
        """Write the state file atomically."""
        data = {
            "version": STATE_VERSION,
            "resources": {
                address: observed.to_dict()
                for address, observed in sorted(self._entries.items())
            },
        }
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)

    def get(self, address: str) -> Optional[ObservedState]:
        return self._entries.get(address)

    def put(self, address: str, observed: ObservedState) -> None:
        self._entries[address] = observed

    def remove(self, address: str) -> None:
        self._entries.pop(address, None)

    def find(self, kind: str, identifier: str) -> Optional[str]:
        """Address of the entry tracking kind/identifier, if any."""
        for address, observed in self._entries.items():
            if observed.kind == kind and observed.identifier == identifier:
                return address
        return None

    def addresses(self) -> List[str]:
        return sorted(self._entries)
