"""
Reconciler - Generic converge algorithm shared by every resource kind.

Drives one remote object toward a desired spec through the transport's
create/read/update/delete calls, adopting pre-existing objects on
conflict and verifying every write with a read.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from transport import RemoteOutcome, RemoteResponse

from resources.base import ObservedState, ResourceKind
from resources.diff import FieldChange, compute_diff
from resources.errors import (
    AdoptionError,
    ReconcileError,
    RemoteReadError,
    RemoteWriteError,
    StateMismatchError,
    ValidationError,
)
from resources.fields import UNSET, FieldRole, is_empty, is_present

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Reconciles remote objects of one resource kind.

    Every operation is a sequential chain of awaits on the transport with
    no internal parallelism and no retries. Cancelling the task running an
    operation aborts the in-flight remote call; nothing already committed
    remotely is compensated.

    Reconciliations of different identifiers are independent and may run
    concurrently. Callers must serialize reconciliations of the same
    identifier (single writer per identifier); this class does not.
    """

    def __init__(self, kind: ResourceKind, transport: Any):
        """
        Args:
            kind: The resource kind to reconcile.
            transport: Object exposing async create/read/update/delete
                returning RemoteResponse (e.g. transport.AirflowClient).
        """
        self.kind = kind
        self.transport = transport

    # Public operations

    async def converge(
        self,
        spec: Any,
        existing_id: Optional[str] = None,
        prior: Optional[ObservedState] = None,
    ) -> ObservedState:
        """
        Drive the remote object to match the desired spec.

        Args:
            spec: Desired state (the kind's spec dataclass).
            existing_id: Identifier recorded by a previous cycle, if any.
            prior: Observed state recorded by a previous cycle, if any.

        Returns:
            The resulting observed state.

        Raises:
            ReconcileError: Any failure, classified by subclass.
        """
        self.kind.validate(spec)
        identifier = self.kind.identifier_of(spec)

        if existing_id is not None and existing_id != identifier:
            logger.info(
                f"{self.kind.name} identifier changed from `{existing_id}` to "
                f"`{identifier}`, replacing"
            )
            await self.delete(existing_id, prior)
            existing_id = None

        if existing_id is None:
            return await self.create(spec)

        observed = await self.read(existing_id, prior)
        if observed is None:
            logger.info(
                f"{self.kind.name} `{identifier}` no longer exists remotely, recreating"
            )
            return await self.create(spec)

        return await self._converge_existing(spec, observed)

    async def create(self, spec: Any) -> ObservedState:
        """
        Create the remote object, adopting it if it already exists.

        Raises:
            ValidationError: The spec is invalid (no remote call made).
            AdoptionError: Conflict reported but the object can't be fetched.
            RemoteWriteError: The create (or follow-up update) failed.
        """
        self.kind.validate(spec)
        identifier = self.kind.identifier_of(spec)

        if not self.kind.supports_create:
            observed = await self.read(identifier)
            if observed is None:
                raise RemoteWriteError(
                    f"{self.kind.name} `{identifier}` does not exist and can't be "
                    f"created through the API",
                    kind=self.kind.name,
                    identifier=identifier,
                    status=404,
                )
            return await self._converge_existing(spec, observed)

        payload = self.kind.create_payload(spec)
        response = await self.transport.create(self.kind.collection, payload)

        if response.outcome is RemoteOutcome.CONFLICT:
            logger.info(
                f"{self.kind.name} `{identifier}` already exists, adopting it"
            )
            return await self._adopt(spec)

        if not response.ok:
            raise self._remote_error(RemoteWriteError, "create", identifier, response)

        logger.info(f"Created {self.kind.name} `{identifier}`")
        return await self._verify(spec)

    async def read(
        self, identifier: str, prior: Optional[ObservedState] = None
    ) -> Optional[ObservedState]:
        """
        Fetch the remote object.

        Args:
            identifier: The object's identifier.
            prior: Last known observed state; supplies values for fields
                the service does not echo back and for local-only fields.

        Returns:
            The observed state, or None if the object does not exist
            (the caller should drop its local state).

        Raises:
            RemoteReadError: The fetch failed for any other reason.
        """
        response = await self.transport.read(self.kind.collection, identifier)

        if response.outcome is RemoteOutcome.NOT_FOUND:
            logger.info(f"{self.kind.name} `{identifier}` is absent remotely")
            return None
        if not response.ok:
            raise self._remote_error(RemoteReadError, "get", identifier, response)

        values = self.kind.observe(
            response.body or {}, prior.values if prior is not None else None
        )
        return ObservedState(kind=self.kind.name, identifier=identifier, values=values)

    async def update(
        self, identifier: str, spec: Any, prior: Optional[ObservedState] = None
    ) -> ObservedState:
        """
        Replace the remote object's managed fields with the desired spec.

        Optional fields missing from the spec are cleared remotely. Secret
        fields missing from the spec are left in place and keep their value
        from ``prior``.

        Raises:
            ValidationError: Invalid spec, or spec identifier differs from
                ``identifier`` (identifiers are immutable).
            RemoteWriteError: The update failed or did not stick.
        """
        self.kind.validate(spec)
        if self.kind.identifier_of(spec) != identifier:
            raise ValidationError(
                f"{self.kind.name} `{identifier}`: "
                f"{self.kind.identifier_field} is immutable, got "
                f"`{self.kind.identifier_of(spec)}`",
                kind=self.kind.name,
                identifier=identifier,
            )
        return await self._write_update(spec, prior)

    async def delete(
        self, identifier: str, prior: Optional[ObservedState] = None
    ) -> None:
        """
        Delete the remote object. Not-found counts as success.

        Reserved identifiers are never deleted. Deletion is attempted
        exactly once; retrying is up to the caller.

        Raises:
            RemoteWriteError: The delete failed for another reason.
        """
        if self.kind.is_reserved(identifier):
            logger.debug(
                f"{self.kind.name} `{identifier}` is reserved and can't be deleted"
            )
            return

        if not self.kind.deletes_remote(prior.values if prior is not None else None):
            logger.info(
                f"Forgetting {self.kind.name} `{identifier}`, remote object left in place"
            )
            return

        response = await self.transport.delete(self.kind.collection, identifier)

        if response.outcome is RemoteOutcome.NOT_FOUND:
            logger.info(f"{self.kind.name} `{identifier}` was already deleted")
            return
        if not response.ok:
            raise self._remote_error(RemoteWriteError, "delete", identifier, response)

        logger.info(f"Deleted {self.kind.name} `{identifier}`")

    def diff(self, spec: Any, observed: ObservedState) -> List[FieldChange]:
        """Managed fields whose observed value differs from the desired one."""
        return compute_diff(
            self.kind.field_map, self.kind.desired_values(spec), observed.values
        )

    # Private helper methods

    async def _adopt(self, spec: Any) -> ObservedState:
        """
        Take over an object that already exists under the desired identifier.

        An identical object is adopted without an update. The exception is
        a desired spec setting a secret field: the service never echoes it
        and there is no prior value, so it always shows up as one update.
        """
        identifier = self.kind.identifier_of(spec)
        response = await self.transport.read(self.kind.collection, identifier)
        if not response.ok:
            raise self._remote_error(
                AdoptionError,
                "fetch conflicting",
                identifier,
                response,
                prefix=f"{self.kind.name} `{identifier}` already exists, but ",
            )

        observed = ObservedState(
            kind=self.kind.name,
            identifier=identifier,
            values=self.kind.observe(response.body or {}),
        )
        return await self._converge_existing(spec, observed)

    async def _converge_existing(
        self, spec: Any, observed: ObservedState
    ) -> ObservedState:
        changes = self.diff(spec, observed)
        if not changes:
            logger.debug(f"{self.kind.name} `{observed.identifier}` is up to date")
            return self._apply_local(observed, spec)

        logger.info(
            f"Updating {self.kind.name} `{observed.identifier}`: "
            f"{', '.join(change.name for change in changes)} changed"
        )
        return await self._write_update(spec, observed)

    async def _write_update(
        self, spec: Any, prior: Optional[ObservedState] = None
    ) -> ObservedState:
        identifier = self.kind.identifier_of(spec)
        payload = self.kind.update_payload(spec)
        response = await self.transport.update(
            self.kind.collection,
            identifier,
            payload,
            update_mask=self.kind.update_mask(payload),
        )
        if not response.ok:
            raise self._remote_error(RemoteWriteError, "update", identifier, response)

        logger.info(f"Updated {self.kind.name} `{identifier}`")
        return await self._verify(spec, prior)

    async def _verify(
        self, spec: Any, prior: Optional[ObservedState] = None
    ) -> ObservedState:
        """Read back after a write and check the written values stuck."""
        identifier = self.kind.identifier_of(spec)
        values = self._local_values(spec, self.kind.to_document(spec))
        if prior is not None:
            for name, spec_field in self.kind.field_map.items():
                # empty secrets are not sent, the remote keeps its value
                if spec_field.secret and is_empty(getattr(spec, name, UNSET)):
                    values[name] = prior.get(name)
        written = ObservedState(
            kind=self.kind.name, identifier=identifier, values=values
        )
        observed = await self.read(identifier, written)
        if observed is None:
            raise StateMismatchError(
                f"{self.kind.name} `{identifier}` was written but is absent on read",
                kind=self.kind.name,
                identifier=identifier,
            )

        mismatches = self.diff(spec, observed)
        if mismatches:
            raise StateMismatchError(
                f"{self.kind.name} `{identifier}` does not reflect the written "
                f"values: {', '.join(change.name for change in mismatches)}",
                kind=self.kind.name,
                identifier=identifier,
                mismatches=mismatches,
            )
        return self._apply_local(observed, spec)

    def _local_values(self, spec: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        for name, spec_field in self.kind.field_map.items():
            if spec_field.role is FieldRole.LOCAL:
                value = getattr(spec, name)
                values[name] = value if is_present(value) else spec_field.default
        return values

    def _apply_local(self, observed: ObservedState, spec: Any) -> ObservedState:
        self._local_values(spec, observed.values)
        return observed

    def _remote_error(
        self,
        error_class: Type[ReconcileError],
        verb: str,
        identifier: str,
        response: RemoteResponse,
        prefix: str = "",
    ) -> ReconcileError:
        status = response.status if response.status is not None else "no response"
        return error_class(
            f"{prefix}failed to {verb} {self.kind.name} `{identifier}`: "
            f"status {status}: {response.message}",
            kind=self.kind.name,
            identifier=identifier,
            status=response.status,
            remote_message=response.message,
        )
