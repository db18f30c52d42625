import pytest

from pool_deployment.constants import WFIL
from pool_deployment.exceptions import RecordNotFound
from pool_deployment.wiring import RESOLVER_WIRING, WiringStep, wire
from tests.conftest import LOCALNET_CHAIN_ID, make_address, make_record


@pytest.fixture
def deployed(records):
    names = {step.target for step in RESOLVER_WIRING} | {step.peer for step in RESOLVER_WIRING}
    for index, name in enumerate(sorted(names), start=1):
        records.put(make_record(name, address=make_address(index)))
    return records


def test_wire_issues_calls_in_order(context, transactor, deployed):
    tx_hashes = wire(context, RESOLVER_WIRING)

    assert len(tx_hashes) == len(RESOLVER_WIRING)
    assert len(set(tx_hashes)) == len(tx_hashes)
    for entry, step in zip(transactor.log, RESOLVER_WIRING):
        target = deployed.get(step.target, LOCALNET_CHAIN_ID)
        peer = deployed.get(step.peer, LOCALNET_CHAIN_ID)
        expected = ("transact", target.contract_type, target.address, step.method, (peer.address,))
        assert entry == expected


def test_wire_repeats_calls(context, transactor, deployed):
    wire(context, RESOLVER_WIRING)
    wire(context, RESOLVER_WIRING)
    assert len(transactor.log) == 2 * len(RESOLVER_WIRING)


def test_missing_record_sends_nothing(context, transactor, records):
    records.put(make_record("Resolver"))
    with pytest.raises(RecordNotFound, match="StorageProviderCollateral"):
        wire(context, RESOLVER_WIRING)
    assert transactor.log == []


def test_external_peer_resolves_from_records(context, transactor, records):
    resolver = records.put(make_record("Resolver", address=make_address(1)))
    wfil = records.put(make_record(WFIL, address=make_address(2)))

    wire(context, [WiringStep("Resolver", "setWFILAddress", WFIL)])

    assert transactor.log == [
        ("transact", "Resolver", resolver.address, "setWFILAddress", (wfil.address,))
    ]


def test_resolver_wiring_covers_every_pool_contract():
    peers = [step.peer for step in RESOLVER_WIRING if step.target == "Resolver"]
    assert peers == [
        "StorageProviderCollateral",
        "LiquidStakingController",
        "StorageProviderRegistry",
        "LiquidStaking",
        "BeneficiaryManager",
        "RewardCollector",
    ]
    registration = WiringStep("StorageProviderRegistry", "registerPool", "LiquidStaking")
    assert RESOLVER_WIRING[-1] == registration
