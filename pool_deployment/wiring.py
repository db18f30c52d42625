from typing import TYPE_CHECKING, List, NamedTuple, Sequence

if TYPE_CHECKING:
    from pool_deployment.context import Context


class WiringStep(NamedTuple):
    """Calls `target.method(address of peer)`."""

    target: str
    method: str
    peer: str


RESOLVER_WIRING = [
    WiringStep("Resolver", "setCollateralAddress", "StorageProviderCollateral"),
    WiringStep("Resolver", "setLiquidStakingControllerAddress", "LiquidStakingController"),
    WiringStep("Resolver", "setRegistryAddress", "StorageProviderRegistry"),
    WiringStep("Resolver", "setLiquidStakingAddress", "LiquidStaking"),
    WiringStep("Resolver", "setBeneficiaryManagerAddress", "BeneficiaryManager"),
    WiringStep("Resolver", "setRewardCollectorAddress", "RewardCollector"),
    WiringStep("StorageProviderRegistry", "registerPool", "LiquidStaking"),
]


def wire(context: "Context", steps: Sequence[WiringStep]) -> List[str]:
    """
    Issues every wiring call in order, each confirmed before the next.

    All target and peer records are looked up before the first transaction,
    so a missing deployment aborts without sending anything. Calls are sent
    even when the on-chain value is already correct.
    """
    resolved = list()
    for step in steps:
        target = context.record_of(step.target)
        peer_address = context.address_of(step.peer)
        resolved.append((step, target, peer_address))

    tx_hashes = list()
    for step, target, peer_address in resolved:
        print(f"\nWiring {step.target}.{step.method}({step.peer}={peer_address})")
        tx_hash = context.transactor.transact(
            target.contract_type, target.address, step.method, [peer_address]
        )
        tx_hashes.append(tx_hash)
    return tx_hashes
