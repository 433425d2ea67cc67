"""
Manifests - Desired-state documents read from YAML or JSON files.

A manifest holds one or more documents of the form::

    kind: pool
    name: pools.etl          # optional state address
    spec:
      name: etl
      slots: 8
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Address pattern: dotted segments of letters, digits, '_' and '-'
ADDRESS_PATTERN = re.compile(r"^[\w-]+(\.[\w-]+)*$")


class ResourceDocument(BaseModel):
    """One desired-state document."""

    kind: str = Field(..., description="Resource kind name", examples=["pool"])
    spec: Dict[str, Any] = Field(..., description="Desired field values")
    name: Optional[str] = Field(
        None, description="State address, defaults to '<kind>.<identifier>'"
    )

    @field_validator("kind")
    @classmethod
    def normalize_kind(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("kind cannot be empty")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not ADDRESS_PATTERN.match(v):
            raise ValueError(
                "name must consist of letters, digits, '_' or '-', "
                "optionally separated by '.'"
            )
        return v

    def address(self, identifier: str) -> str:
        return self.name or f"{self.kind}.{identifier}"


def _read_raw(filename: str) -> List[Any]:
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            raw = [doc for doc in yaml.safe_load_all(f) if doc is not None]
        else:
            raw = json.load(f)

    if isinstance(raw, dict):
        return [raw]

    documents = []
    for item in raw:
        if isinstance(item, list):
            documents.extend(item)
        else:
            documents.append(item)
    return documents


def load_documents(filename: str) -> List[ResourceDocument]:
    """
    Load every desired-state document from a manifest file.

    Args:
        filename: Path to a .yaml/.yml (multi-document) or .json file.

    Returns:
        Documents in file order.

    Raises:
        ValueError: If the file can't be parsed or a document is malformed.
    """
    try:
        raw = _read_raw(filename)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"{filename}: {e}")

    documents = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"{filename}: document {index} is not a mapping")
        try:
            documents.append(ResourceDocument(**item))
        except ValidationError as e:
            raise ValueError(f"{filename}: document {index}: {e}")

    logger.debug(f"Loaded {len(documents)} documents from {filename}")
    return documents
