"""Pytest configuration and fixtures."""

import copy

import pytest

from config import AirflowConfig, Config
from transport import RemoteOutcome, RemoteResponse

ID_FIELDS = {
    "connections": "connection_id",
    "dags": "dag_id",
    "pools": "name",
    "variables": "key",
}

CONNECTION_FIELDS = (
    "description",
    "host",
    "login",
    "schema",
    "port",
    "extra",
)


class FakeAirflow:
    """
    In-memory stand-in for the Airflow REST API.

    Objects are stored per collection. Connections never echo the password
    and pools fill in their slot counters, like the real service. Failures
    can be injected per (method, collection) with ``fail``.
    """

    def __init__(self):
        self.objects = {name: {} for name in ID_FIELDS}
        self.calls = []
        self.failures = {}
        self.drop_writes = False

    def seed(self, collection, body):
        identifier = body[ID_FIELDS[collection]]
        self.objects[collection][identifier] = copy.deepcopy(body)

    def fail(self, method, collection, status=500, message="boom"):
        self.failures[(method, collection)] = (status, message)

    def calls_for(self, method):
        return [call for call in self.calls if call[0] == method]

    def _failure(self, method, collection):
        if (method, collection) not in self.failures:
            return None
        status, message = self.failures[(method, collection)]
        outcome = (
            RemoteOutcome.FAILURE if status is None else RemoteOutcome.from_status(status)
        )
        return RemoteResponse(outcome=outcome, status=status, message=message)

    def _render(self, collection, stored):
        body = copy.deepcopy(stored)
        if collection == "connections":
            body.pop("password", None)
            for name in CONNECTION_FIELDS:
                body.setdefault(name, None)
        elif collection == "pools":
            body.setdefault("description", None)
            body.update(
                occupied_slots=0,
                running_slots=0,
                queued_slots=0,
                open_slots=body["slots"],
            )
        elif collection == "variables":
            body.setdefault("description", None)
        return body

    async def create(self, collection, payload):
        self.calls.append(("create", collection, copy.deepcopy(payload)))
        failure = self._failure("create", collection)
        if failure:
            return failure

        identifier = payload[ID_FIELDS[collection]]
        if identifier in self.objects[collection]:
            return RemoteResponse(
                outcome=RemoteOutcome.CONFLICT,
                status=409,
                message=f"{identifier} already exists",
            )
        if not self.drop_writes:
            self.objects[collection][identifier] = copy.deepcopy(payload)
        return RemoteResponse(
            outcome=RemoteOutcome.SUCCESS,
            status=201,
            body=self._render(collection, payload),
        )

    async def read(self, collection, identifier):
        self.calls.append(("read", collection, identifier))
        failure = self._failure("read", collection)
        if failure:
            return failure

        stored = self.objects[collection].get(identifier)
        if stored is None:
            return RemoteResponse(
                outcome=RemoteOutcome.NOT_FOUND, status=404, message="Not Found"
            )
        return RemoteResponse(
            outcome=RemoteOutcome.SUCCESS,
            status=200,
            body=self._render(collection, stored),
        )

    async def update(self, collection, identifier, payload, update_mask=None):
        self.calls.append(
            ("update", collection, identifier, copy.deepcopy(payload), update_mask)
        )
        failure = self._failure("update", collection)
        if failure:
            return failure

        stored = self.objects[collection].get(identifier)
        if stored is None:
            return RemoteResponse(
                outcome=RemoteOutcome.NOT_FOUND, status=404, message="Not Found"
            )
        if not self.drop_writes:
            stored.update(copy.deepcopy(payload))
        return RemoteResponse(
            outcome=RemoteOutcome.SUCCESS,
            status=200,
            body=self._render(collection, stored),
        )

    async def delete(self, collection, identifier):
        self.calls.append(("delete", collection, identifier))
        failure = self._failure("delete", collection)
        if failure:
            return failure

        if self.objects[collection].pop(identifier, None) is None:
            return RemoteResponse(
                outcome=RemoteOutcome.NOT_FOUND, status=404, message="Not Found"
            )
        return RemoteResponse(outcome=RemoteOutcome.SUCCESS, status=204)


@pytest.fixture
def airflow():
    """In-memory Airflow API."""
    return FakeAirflow()


@pytest.fixture
def airflow_config():
    """Airflow settings for a local test deployment."""
    return AirflowConfig(base_endpoint="http://airflow.test:8080")


@pytest.fixture
def cli_config(tmp_path, airflow_config):
    """Full configuration with a state file under tmp_path."""
    return Config(
        airflow=airflow_config, state_file=str(tmp_path / "afctl.state.json")
    )
