"""Deployment units of the liquid staking pool."""

from typing import TYPE_CHECKING, Optional

from pool_deployment.constants import WFIL
from pool_deployment.proxy import proxy_state
from pool_deployment.records import DeploymentRecord
from pool_deployment.units import UnitKind, unit, validate_units
from pool_deployment.wiring import RESOLVER_WIRING, wire

if TYPE_CHECKING:
    from pool_deployment.context import Context


def deploy_contract(context: "Context") -> DeploymentRecord:
    """Deploys the unit's contract with its configured initializer arguments."""
    current = context.unit
    args = context.initializer_args()
    if current.kind is UnitKind.PROXY and context.params.use_proxies:
        return context.proxies.deploy_proxy(
            name=current.name,
            chain_id=context.chain_id,
            contract_type=current.name,
            args=args,
            state=proxy_state(context.records.find(current.name, context.chain_id)),
        )
    return context.proxies.deploy_plain(
        name=current.name, chain_id=context.chain_id, contract_type=current.name, args=args
    )


def upgrade_contract(context: "Context") -> DeploymentRecord:
    """Moves the upgraded unit's proxy onto this unit's contract type."""
    current = context.unit
    record = context.record_of(current.upgrades)
    return context.proxies.upgrade_proxy(record=record, contract_type=current.name)


def integrate(context: "Context") -> Optional[DeploymentRecord]:
    wire(context, RESOLVER_WIRING)
    return None


UNITS = validate_units(
    [
        unit(WFIL, deploy_contract, kind=UnitKind.PLAIN, local_only=True),
        unit("Storage", deploy_contract, kind=UnitKind.PLAIN, local_only=True),
        unit("Resolver", deploy_contract),
        unit("StorageProviderRegistry", deploy_contract, tags=["Registry"]),
        unit("BeneficiaryManager", deploy_contract, dependencies=["Resolver"]),
        unit(
            "StorageProviderCollateral",
            deploy_contract,
            tags=["Collateral"],
            dependencies=["Resolver", WFIL],
        ),
        unit("RewardCollector", deploy_contract, dependencies=["Resolver", WFIL]),
        unit(
            "LiquidStakingController",
            deploy_contract,
            dependencies=["Resolver", "BeneficiaryManager", WFIL, "RewardCollector"],
        ),
        unit(
            "LiquidStaking",
            deploy_contract,
            tags=["Staking"],
            dependencies=[WFIL, "Resolver", "LiquidStakingController"],
        ),
        unit(
            "Integration",
            integrate,
            kind=UnitKind.TASK,
            dependencies=[
                "StorageProviderCollateral",
                "LiquidStaking",
                "StorageProviderRegistry",
                "BeneficiaryManager",
                "RewardCollector",
                "LiquidStakingController",
            ],
        ),
        unit(
            "RewardCollectorV2",
            upgrade_contract,
            kind=UnitKind.UPGRADE,
            upgrades="RewardCollector",
            dependencies=["RewardCollector", "Integration"],
        ),
    ]
)
