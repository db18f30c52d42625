import json

import pytest

from pool_deployment.exceptions import RecordNotFound
from pool_deployment.records import RecordStore, read_registry
from tests.conftest import LOCALNET_CHAIN_ID, make_address, make_record


def test_put_and_get(records, registry_filepath):
    record = records.put(make_record("Resolver"))

    assert records.get("Resolver", LOCALNET_CHAIN_ID) == record
    assert records.exists("Resolver", LOCALNET_CHAIN_ID)
    assert record.created_at is not None
    assert record.updated_at is not None
    assert registry_filepath.exists()


def test_missing_record(records):
    assert records.find("Resolver", LOCALNET_CHAIN_ID) is None
    assert not records.exists("Resolver", LOCALNET_CHAIN_ID)
    with pytest.raises(RecordNotFound):
        records.get("Resolver", LOCALNET_CHAIN_ID)
    with pytest.raises(LookupError):
        records.get("Resolver", LOCALNET_CHAIN_ID)


def test_records_survive_reopening(records, registry_filepath):
    records.put(make_record("Resolver"))
    records.put(make_record("LiquidStaking", implementation=make_address(0xB2)))

    reopened = RecordStore(registry_filepath)
    by_name = lambda r: r.name
    assert sorted(reopened.records(), key=by_name) == sorted(records.records(), key=by_name)
    staking = reopened.get("LiquidStaking", LOCALNET_CHAIN_ID)
    assert staking.is_proxy
    assert staking.implementation == make_address(0xB2)


def test_put_overwrites_and_keeps_created_at(records):
    first = records.put(make_record("RewardCollector", address=make_address(1)))
    second = records.put(
        make_record(
            "RewardCollector",
            address=make_address(1),
            implementation=make_address(2),
            contract_type="RewardCollectorV2",
        )
    )

    assert len(records.records()) == 1
    assert second.created_at == first.created_at
    assert records.get("RewardCollector", LOCALNET_CHAIN_ID).contract_type == "RewardCollectorV2"


def test_records_are_keyed_by_chain(records):
    records.put(make_record("Resolver", chain_id=314, address=make_address(1)))
    records.put(make_record("Resolver", chain_id=314159, address=make_address(2)))

    assert records.get("Resolver", 314).address == make_address(1)
    assert records.get("Resolver", 314159).address == make_address(2)
    assert [r.chain_id for r in records.records(chain_id=314)] == [314]
    assert records.find("Resolver", LOCALNET_CHAIN_ID) is None


def test_registry_file_layout(records, registry_filepath):
    records.put(make_record("Resolver"))
    records.put(make_record("LiquidStaking", implementation=make_address(0xB2)))

    with open(registry_filepath) as file:
        data = json.load(file)

    entries = data[str(LOCALNET_CHAIN_ID)]
    assert list(entries) == ["LiquidStaking", "Resolver"]
    assert entries["LiquidStaking"]["implementation"] == make_address(0xB2)
    assert "implementation" not in entries["Resolver"]
    assert len(read_registry(registry_filepath)) == 2


def test_no_temporary_file_is_left_behind(records, registry_filepath):
    records.put(make_record("Resolver"))
    assert [p.name for p in registry_filepath.parent.iterdir()] == [registry_filepath.name]


def test_failed_write_keeps_previous_record(records, registry_filepath, monkeypatch):
    original = records.put(make_record("Resolver", address=make_address(1)))

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("pool_deployment.records.os.replace", fail_replace)
    with pytest.raises(OSError, match="disk full"):
        records.put(make_record("Resolver", address=make_address(2)))

    assert records.find("Resolver", LOCALNET_CHAIN_ID) == original
    assert RecordStore(registry_filepath).get("Resolver", LOCALNET_CHAIN_ID) == original
    assert [p.name for p in registry_filepath.parent.iterdir()] == [registry_filepath.name]
