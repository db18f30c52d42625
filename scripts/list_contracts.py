#!/usr/bin/python3


from itertools import groupby
from typing import List, Optional, Tuple

import click

from pool_deployment.constants import SUPPORTED_NETWORKS
from pool_deployment.networks import get_profile
from pool_deployment.params import DeploymentParameters
from pool_deployment.pool import UNITS
from pool_deployment.records import DeploymentRecord, RecordStore
from pool_deployment.utils import params_filepath_from_network


def _get_records(network: Optional[str] = None) -> List[Tuple[str, List[DeploymentRecord]]]:
    """Reads the deployment records of the given network or all supported networks."""
    network_records = list()
    for pool_network in SUPPORTED_NETWORKS:
        if network and network != pool_network:
            continue
        params = DeploymentParameters.from_yaml(params_filepath_from_network(pool_network), UNITS)
        if not params.registry_filepath.exists():
            continue
        store = RecordStore(params.registry_filepath)
        network_records.append((pool_network, store.records()))
    return network_records


def _display_records(network_records: List[Tuple[str, List[DeploymentRecord]]]) -> None:
    """Display deployment records grouped by chain ID."""
    for network, records in network_records:
        click.secho(f"\n{network.capitalize()}", fg="green")

        for chain_id, chain_records in groupby(records, key=lambda r: r.chain_id):
            click.secho(f"    {get_profile(chain_id).name} ({chain_id})", fg="yellow")

            for index, record in enumerate(chain_records, start=1):
                line = f"        {index}. {record.name} {record.address}"
                if record.is_proxy:
                    line += f" (implementation {record.contract_type} {record.implementation})"
                click.secho(line, fg="cyan")


@click.command(name="list-contracts")
@click.option(
    "--pool-network",
    "-n",
    help="Only list the records of this network.",
    type=click.Choice(SUPPORTED_NETWORKS),
)
def cli(pool_network):
    """List all recorded contracts. Optionally filter by network."""
    _display_records(_get_records(pool_network))


if __name__ == "__main__":
    cli()
