#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, account_option, network_option

from pool_deployment.ape_transactor import ApeTransactor
from pool_deployment.commands import DeployCommand
from pool_deployment.engine import DeploymentEngine, RunReport, print_plan
from pool_deployment.exceptions import DeploymentError
from pool_deployment.options import (
    autosign_option,
    params_option,
    plan_only_option,
    pool_network_option,
    registry_option,
    tag_option,
    verify_option,
)
from pool_deployment.pool import UNITS
from pool_deployment.utils import params_filepath_from_network


def _print_deployment_info(engine: DeploymentEngine, transactor: ApeTransactor) -> None:
    print(
        f"Account: {transactor.deployer_address}",
        f"Config: {engine.context.params.path}",
        f"Registry: {engine.context.records.filepath}",
        f"Strategy: {engine.context.params.strategy}",
        f"Verify: {engine.verify}",
        f"Ecosystem: {networks.provider.network.ecosystem.name}",
        f"Network: {networks.provider.network.name}",
        f"Chain ID: {networks.provider.network.chain_id}",
        f"Gas Price: {networks.provider.gas_price}",
        sep="\n",
    )


def _print_report(report: RunReport) -> None:
    click.secho("\nDeployment complete.", fg="green")
    for record in report.deployed:
        click.secho(f"    deployed {record.name} {record.address}", fg="cyan")
    for record in report.upgraded:
        click.secho(
            f"    upgraded {record.name} {record.address} -> {record.implementation}", fg="cyan"
        )
    for name in report.tasks:
        click.secho(f"    ran {name}", fg="cyan")
    if report.skipped:
        click.secho(f"    skipped {', '.join(report.skipped)}", fg="yellow")


@click.command(cls=ConnectedProviderCommand, name="deploy")
@account_option()
@network_option(required=True)
@tag_option
@params_option
@pool_network_option
@registry_option
@autosign_option
@verify_option
@plan_only_option
def cli(
    account,
    network,
    tags,
    params_filepath,
    pool_network,
    registry_filepath,
    autosign,
    verify,
    plan_only,
):
    """Deploy the pool contracts selected by --tag, along with everything they depend on."""
    if params_filepath is None:
        if pool_network is None:
            raise click.UsageError("One of --params or --pool-network is required.")
        params_filepath = params_filepath_from_network(pool_network)

    command = DeployCommand(
        tags=tuple(tags),
        params_filepath=params_filepath,
        registry_filepath=registry_filepath,
        autosign=autosign,
        verify=verify,
        plan_only=plan_only,
    )
    click.echo(f"Connected to {network.name} network.")

    try:
        command.validate(UNITS)
        transactor = ApeTransactor(account=account, autosign=autosign)
        engine = DeploymentEngine.from_command(command, transactor, UNITS)
        _print_deployment_info(engine, transactor)

        if command.plan_only:
            print_plan(engine.plan(command.tags), engine.context.profile)
            return

        report = engine.run(command.tags)
    except DeploymentError as e:
        location = f" [{e.location}]" if e.location else ""
        raise click.ClickException(f"{type(e).__name__}{location}: {e}") from e

    _print_report(report)


if __name__ == "__main__":
    cli()
