from pathlib import Path

import click

from pool_deployment.constants import SUPPORTED_NETWORKS
from pool_deployment.pool import UNITS
from pool_deployment.units import all_tags

tag_option = click.option(
    "--tag",
    "-t",
    "tags",
    help="Deployment tag to bring up; dependencies are included automatically.",
    type=click.Choice(all_tags(UNITS)),
    multiple=True,
    required=True,
)

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Deployment parameters YAML (defaults to the file for --pool-network).",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

pool_network_option = click.option(
    "--pool-network",
    "-n",
    help="Name of the deployment parameters under pool_deployment/params.",
    type=click.Choice(SUPPORTED_NETWORKS),
    required=False,
)

registry_option = click.option(
    "--registry",
    "-r",
    "registry_filepath",
    help="Deployment registry JSON (defaults to the artifacts entry of the parameters).",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)

autosign_option = click.option(
    "--autosign",
    help="Sign and send every transaction without confirmation prompts.",
    is_flag=True,
    default=False,
)

verify_option = click.option(
    "--verify",
    help="Publish deployed contracts to the network's block explorer.",
    is_flag=True,
    default=False,
)

plan_only_option = click.option(
    "--plan-only",
    help="Print the deployment plan and exit without sending transactions.",
    is_flag=True,
    default=False,
)
