#!/usr/bin/env python3
"""
CLI tool for the Airflow reconciler
Converges Airflow connections, DAGs, pools and variables to manifests
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import click
import yaml
from tabulate import tabulate

from config import Config, load_config
from manifest import load_documents
from resources import ReconcileError, Reconciler, build_registry
from resources.base import ObservedState
from state import StateStore
from transport import AirflowClient, AuthenticationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AirflowReconcilerCLI:
    """Wires configuration, registry, transport and state for one invocation"""

    def __init__(self, config: Config, state_file: Optional[str] = None):
        self.config = config
        self.registry = build_registry()
        self.client = AirflowClient(config.airflow)
        self.state = StateStore(state_file or config.state_file)

    def reconciler(self, kind_name: str) -> Reconciler:
        return Reconciler(self.registry.get_kind(kind_name), self.client)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _values_table(observed: ObservedState, secret_fields: List[str]) -> str:
    rows = []
    for name, value in observed.values.items():
        if name in secret_fields and value:
            value = "(sensitive)"
        rows.append([name, _format_value(value)])
    return tabulate(rows, headers=["Field", "Value"], tablefmt="grid")


def _secret_fields(cli_app: AirflowReconcilerCLI, kind_name: str) -> List[str]:
    kind = cli_app.registry.get_kind(kind_name)
    return [name for name, spec in kind.field_map.items() if spec.secret]


@click.group()
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="State file (default: $AIRFLOW_STATE_FILE or afctl.state.json)",
)
@click.option("--log-level", default=None, help="Logging level (default: $LOG_LEVEL)")
@click.pass_context
def cli(ctx, state_file, log_level):
    """Airflow reconciler CLI - converge Airflow resources to declared state"""
    try:
        config = load_config()
    except ValueError as e:
        _fail(str(e))

    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format=LOG_FORMAT,
    )
    ctx.obj = AirflowReconcilerCLI(config, state_file)


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.pass_obj
def apply(cli_app, filename):
    """Converge every resource declared in a YAML/JSON manifest"""
    try:
        documents = load_documents(filename)
        cli_app.state.load()
    except ValueError as e:
        _fail(str(e))

    rows, failures = asyncio.run(_apply(cli_app, documents))

    click.echo(
        tabulate(rows, headers=["Address", "Kind", "Identifier", "Result"], tablefmt="grid")
    )
    if failures:
        for address, message in failures:
            click.echo(f"Error: {address}: {message}", err=True)
        raise SystemExit(1)


async def _apply(cli_app: AirflowReconcilerCLI, documents):
    rows = []
    failures = []
    for document in documents:
        identifier = None
        try:
            reconciler = cli_app.reconciler(document.kind)
            kind = reconciler.kind
            spec = kind.from_document(document.spec)
            identifier = kind.identifier_of(spec)
            address = document.address(identifier)
            prior = cli_app.state.get(address)
            logger.debug(f"Converging {address}")

            observed = await reconciler.converge(
                spec,
                existing_id=prior.identifier if prior is not None else None,
                prior=prior,
            )
        except (ReconcileError, AuthenticationError, ValueError) as e:
            address = document.name or ".".join(
                part for part in (document.kind, identifier) if part
            )
            rows.append([address, document.kind, identifier, "failed"])
            failures.append((address, str(e)))
            continue

        cli_app.state.put(address, observed)
        cli_app.state.save()
        rows.append([address, document.kind, identifier, "converged"])
    return rows, failures


@cli.command()
@click.argument("kind")
@click.argument("identifier")
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
@click.pass_obj
def get(cli_app, kind, identifier, output):
    """Read a resource from Airflow"""
    try:
        cli_app.state.load()
        reconciler = cli_app.reconciler(kind)
        address = cli_app.state.find(kind, identifier)
        prior = cli_app.state.get(address) if address else None
        observed = asyncio.run(reconciler.read(identifier, prior))
    except (ReconcileError, AuthenticationError, ValueError) as e:
        _fail(str(e))

    if observed is None:
        _fail(f"{kind} `{identifier}` not found")

    if output == "json":
        click.echo(json.dumps(observed.to_dict(), indent=2))
    elif output == "yaml":
        click.echo(yaml.dump(observed.to_dict(), default_flow_style=False))
    else:
        click.echo(_values_table(observed, _secret_fields(cli_app, kind)))


@cli.command(name="import")
@click.argument("kind")
@click.argument("identifier")
@click.option("--name", default=None, help="State address for the imported resource")
@click.pass_obj
def import_resource(cli_app, kind, identifier, name):
    """Start managing a resource created outside this tool"""
    try:
        cli_app.state.load()
        reconciler = cli_app.reconciler(kind)
        observed = asyncio.run(reconciler.read(identifier))
    except (ReconcileError, AuthenticationError, ValueError) as e:
        _fail(str(e))

    if observed is None:
        _fail(f"{kind} `{identifier}` not found")

    address = name or f"{kind}.{identifier}"
    cli_app.state.put(address, observed)
    cli_app.state.save()

    spec = reconciler.kind.spec_from_observed(observed)
    document: Dict[str, Any] = {"kind": kind, "name": address}
    document["spec"] = reconciler.kind.to_document(spec)
    click.echo(yaml.dump(document, default_flow_style=False, sort_keys=False))


@cli.command()
@click.argument("kind")
@click.argument("identifier")
@click.confirmation_option(prompt="Are you sure you want to delete this resource?")
@click.pass_obj
def delete(cli_app, kind, identifier):
    """Delete a resource from Airflow and forget it"""
    try:
        cli_app.state.load()
        reconciler = cli_app.reconciler(kind)
        address = cli_app.state.find(kind, identifier)
        prior = cli_app.state.get(address) if address else None
        asyncio.run(reconciler.delete(identifier, prior))
    except (ReconcileError, AuthenticationError, ValueError) as e:
        _fail(str(e))

    if address:
        cli_app.state.remove(address)
        cli_app.state.save()
    click.echo(f"{kind} `{identifier}` deleted")


@cli.command()
@click.pass_obj
def refresh(cli_app):
    """Re-read every tracked resource and drop the ones that are gone"""
    try:
        cli_app.state.load()
    except ValueError as e:
        _fail(str(e))

    rows, failures = asyncio.run(_refresh(cli_app))
    cli_app.state.save()

    click.echo(
        tabulate(rows, headers=["Address", "Kind", "Identifier", "Result"], tablefmt="grid")
    )
    if failures:
        for address, message in failures:
            click.echo(f"Error: {address}: {message}", err=True)
        raise SystemExit(1)


async def _refresh(cli_app: AirflowReconcilerCLI):
    rows = []
    failures = []
    for address in cli_app.state.addresses():
        prior = cli_app.state.get(address)
        try:
            reconciler = cli_app.reconciler(prior.kind)
            observed = await reconciler.read(prior.identifier, prior)
        except (ReconcileError, AuthenticationError, ValueError) as e:
            rows.append([address, prior.kind, prior.identifier, "failed"])
            failures.append((address, str(e)))
            continue

        if observed is None:
            cli_app.state.remove(address)
            rows.append([address, prior.kind, prior.identifier, "removed"])
        else:
            cli_app.state.put(address, observed)
            rows.append([address, prior.kind, prior.identifier, "ok"])
    return rows, failures


if __name__ == "__main__":
    cli()
