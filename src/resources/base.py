"""
Resource Kind Base - Abstract description of one remote resource kind.

A resource kind supplies the static tables the generic reconciler needs:
the identifier field, the FieldMap, the desired-state JSON schema and the
conflict/deletion policy. Payload construction and response normalization
are generic and driven by the FieldMap; kinds override the hooks only
where the remote API has quirks.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Type

from validation import collect_schema_errors

from resources.errors import ValidationError
from resources.fields import (
    CLEAR,
    REDACTED_VALUE,
    UNSET,
    FieldRole,
    FieldSpec,
    is_empty,
    is_present,
)

logger = logging.getLogger(__name__)


@dataclass
class ObservedState:
    """Last known remote representation of a resource, keyed by local field name."""

    kind: str
    identifier: str
    values: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "identifier": self.identifier,
            "values": dict(self.values),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObservedState":
        return cls(
            kind=data["kind"],
            identifier=data["identifier"],
            values=dict(data.get("values") or {}),
        )


class ResourceKind(ABC):
    """
    Abstract base class for resource kinds.

    Subclasses declare their tables as class attributes:

        collection: API collection path segment (e.g. 'pools').
        identifier_field: Local name of the identifier field.
        spec_class: Dataclass holding the desired state.
        field_map: FieldMap, local field name -> FieldSpec.
        schema: JSON Schema (Draft 7) for the desired-state document.
        reserved_identifiers: Identifiers that are never deleted remotely.
        supports_create: False when objects can't be created through the API.
        identifier_in_update: Whether update bodies repeat the identifier.
        use_update_mask: Whether updates list the written attributes.
    """

    collection: str = ""
    identifier_field: str = ""
    spec_class: Optional[Type] = None
    field_map: Dict[str, FieldSpec] = {}
    schema: Dict[str, Any] = {}
    reserved_identifiers: FrozenSet[str] = frozenset()
    supports_create: bool = True
    identifier_in_update: bool = True
    use_update_mask: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique kind name (e.g. 'pool')."""
        pass

    # Desired state

    def identifier_of(self, spec: Any) -> str:
        return getattr(spec, self.identifier_field)

    def desired_values(self, spec: Any) -> Dict[str, Any]:
        """Map every spec field to its value, keeping UNSET and CLEAR markers."""
        return {f.name: getattr(spec, f.name) for f in dataclasses.fields(spec)}

    def to_document(self, spec: Any) -> Dict[str, Any]:
        """
        Render a desired spec as a plain document.

        UNSET fields are dropped and CLEAR becomes None, so the result can
        be validated against the kind's schema or stored as YAML/JSON.
        """
        document = {}
        for name, value in self.desired_values(spec).items():
            if value is UNSET:
                continue
            document[name] = None if value is CLEAR else value
        return document

    def from_document(self, document: Dict[str, Any]) -> Any:
        """
        Build a desired spec from a plain document.

        Explicit nulls become CLEAR, missing optional fields stay UNSET.

        Raises:
            ValidationError: If the document does not match the kind's schema.
        """
        errors = collect_schema_errors(document, self.schema)
        if errors:
            raise ValidationError(
                f"invalid {self.name} `{document.get(self.identifier_field)}`: "
                + "; ".join(errors),
                kind=self.name,
                identifier=document.get(self.identifier_field),
                errors=errors,
            )
        kwargs = {}
        for name, value in document.items():
            kwargs[name] = CLEAR if value is None else value
        return self.spec_class(**kwargs)

    def validate(self, spec: Any) -> None:
        """
        Check a desired spec against the schema and the kind's own constraints.

        Raises:
            ValidationError: Listing every violation. Raised before any remote call.
        """
        if not isinstance(spec, self.spec_class):
            raise ValidationError(
                f"{self.name} expects a {self.spec_class.__name__}, "
                f"got {type(spec).__name__}",
                kind=self.name,
            )
        identifier = self.identifier_of(spec)
        errors = collect_schema_errors(self.to_document(spec), self.schema)
        errors.extend(self.check(spec))
        if errors:
            raise ValidationError(
                f"invalid {self.name} `{identifier}`: " + "; ".join(errors),
                kind=self.name,
                identifier=identifier,
                errors=errors,
            )

    def check(self, spec: Any) -> List[str]:
        """
        Kind-specific constraints beyond the JSON schema.

        Returns:
            List of error messages, empty if the spec is valid.
        """
        return []

    # Wire payloads

    def create_payload(self, spec: Any) -> Dict[str, Any]:
        """Required fields plus present optional fields; unspecified ones are omitted."""
        payload = {}
        for name, spec_field in self.field_map.items():
            value = getattr(spec, name, UNSET)
            wire = spec_field.wire_name(name)
            if spec_field.role in (FieldRole.IDENTIFIER, FieldRole.REQUIRED):
                payload[wire] = value
            elif spec_field.role is FieldRole.OPTIONAL and is_present(value):
                payload[wire] = value
        return payload

    def update_payload(self, spec: Any) -> Dict[str, Any]:
        """
        Full-replacement update body.

        Every optional field is sent: its value when present, an explicit
        null otherwise. Secret fields are sent only with a non-empty value.
        """
        payload = {}
        for name, spec_field in self.field_map.items():
            value = getattr(spec, name, UNSET)
            wire = spec_field.wire_name(name)
            if spec_field.role is FieldRole.IDENTIFIER:
                if self.identifier_in_update:
                    payload[wire] = value
            elif spec_field.role is FieldRole.REQUIRED:
                payload[wire] = value
            elif spec_field.role is FieldRole.OPTIONAL:
                if spec_field.secret:
                    if not is_empty(value):
                        payload[wire] = value
                else:
                    payload[wire] = value if is_present(value) else None
        return payload

    def update_mask(self, payload: Dict[str, Any]) -> Optional[List[str]]:
        if not self.use_update_mask:
            return None
        identifier_wire = self.field_map[self.identifier_field].wire_name(
            self.identifier_field
        )
        return [key for key in payload if key != identifier_wire]

    # Observed state

    def observe(
        self, body: Dict[str, Any], prior: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Normalize a remote response into observed field values.

        Args:
            body: Decoded response body.
            prior: Last known local values, used for fields the service
                does not echo back (secrets, redacted values) and for
                local-only fields.

        Returns:
            Observed values keyed by local field name.
        """
        prior = prior or {}
        values = {}
        for name, spec_field in self.field_map.items():
            if spec_field.role is FieldRole.LOCAL:
                values[name] = prior.get(name, spec_field.default)
                continue

            remote = body.get(spec_field.wire_name(name))
            if spec_field.secret and (remote is None or remote == REDACTED_VALUE):
                if prior.get(name) is not None:
                    logger.debug(f"{self.name}: keeping last known value of '{name}'")
                values[name] = prior.get(name)
            elif spec_field.redacted and remote == REDACTED_VALUE and name in prior:
                logger.debug(f"{self.name}: '{name}' is redacted, keeping last known value")
                values[name] = prior[name]
            else:
                values[name] = remote
        return values

    def spec_from_observed(self, observed: ObservedState) -> Any:
        """Build a desired spec from observed state (import of out-of-band objects)."""
        kwargs = {}
        for name, spec_field in self.field_map.items():
            value = observed.values.get(name)
            if spec_field.role in (FieldRole.IDENTIFIER, FieldRole.REQUIRED):
                kwargs[name] = value
            elif spec_field.role is FieldRole.OPTIONAL and value is not None:
                kwargs[name] = value
            elif spec_field.role is FieldRole.LOCAL:
                kwargs[name] = value if value is not None else spec_field.default
        kwargs[self.identifier_field] = observed.identifier
        return self.spec_class(**kwargs)

    # Deletion policy

    def is_reserved(self, identifier: str) -> bool:
        return identifier in self.reserved_identifiers

    def deletes_remote(self, prior: Optional[Dict[str, Any]]) -> bool:
        """Whether Delete should remove the remote object."""
        return True
