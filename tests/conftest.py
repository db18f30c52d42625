from typing import Any, Dict, List, Optional, Sequence

import pytest
from eth_utils import to_checksum_address

from pool_deployment.constants import (
    CHAIN_IDS,
    EIP1967_IMPLEMENTATION_SLOT,
    FILECOIN_MAINNET,
    INITIALIZER,
    LOCALNET,
    PARAMS_DIR,
    PROXY_CONTRACT,
    UPGRADE_METHOD,
    UPGRADE_TO_METHOD,
    VERSION_METHOD,
)
from pool_deployment.context import Context
from pool_deployment.engine import DeploymentEngine
from pool_deployment.exceptions import TransactionRevertedError
from pool_deployment.networks import get_profile
from pool_deployment.params import DeploymentParameters
from pool_deployment.pool import UNITS
from pool_deployment.records import DeploymentRecord, RecordStore
from pool_deployment.transactor import Deployment, Transactor

# Common constants
DEPLOYER = to_checksum_address("0x" + "de" * 20)
LOCALNET_CHAIN_ID = CHAIN_IDS[LOCALNET]
VERSION_ABI = {"type": "function", "name": "version", "inputs": [], "outputs": []}
UPGRADE_TO_ABI = {
    "type": "function",
    "name": "upgradeTo",
    "inputs": [{"name": "newImplementation", "type": "address"}],
    "outputs": [],
}

# Minimal parameters for a live network without a local WFIL mock
BASE_CONFIG = {
    "deployment": {"name": "test", "chain_id": CHAIN_IDS[FILECOIN_MAINNET]},
    "artifacts": {"dir": "./artifacts/", "filename": "test.json"},
    "constants": {"MAX_ALLOCATION": 100},
    "contracts": [
        "Resolver",
        {"StorageProviderRegistry": {"initializer": {"_maxAllocation": "$MAX_ALLOCATION"}}},
        {
            "RewardCollector": {
                "initializer": {"_wFIL": "$WFIL", "_resolver": "$Resolver", "owners": ["$deployer"]}
            }
        },
    ],
}


# Utility functions
def make_address(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


def make_record(
    name: str,
    chain_id: int = LOCALNET_CHAIN_ID,
    address: Optional[str] = None,
    implementation: Optional[str] = None,
    contract_type: Optional[str] = None,
) -> DeploymentRecord:
    return DeploymentRecord(
        chain_id=chain_id,
        name=name,
        address=address or make_address(0xA1),
        abi=[VERSION_ABI],
        contract_type=contract_type or name,
        tx_hash="0x" + "00" * 32,
        block_number=1,
        deployer=DEPLOYER,
        implementation=implementation,
    )


class FakeTransactor(Transactor):
    """
    In-memory chain. Proxies keep their implementation in the ERC-1967 slot
    and `version()` answers from the `versions` table of the implementation.
    """

    def __init__(self, chain_id: int = LOCALNET_CHAIN_ID, versions: Dict[str, Any] = None):
        self._chain_id = chain_id
        self.versions = dict(versions or {})
        self.abis: Dict[str, List[dict]] = dict()
        self.contracts: Dict[str, str] = dict()
        self.storage: Dict[tuple, bytes] = dict()
        self.initialized: Dict[str, int] = dict()
        self.log: List[tuple] = list()
        self.fail_on = set()
        self._counter = 0

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def deployer_address(self) -> str:
        return DEPLOYER

    @property
    def transactions(self) -> List[tuple]:
        return [entry for entry in self.log if entry[0] in ("deploy", "transact")]

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _tx_hash(self) -> str:
        return f"0x{self._next():064x}"

    def _check_failure(self, key: str) -> None:
        if key in self.fail_on:
            raise TransactionRevertedError(f"{key} reverted")

    def _point_at(self, proxy: str, implementation: str) -> None:
        self.storage[(proxy, EIP1967_IMPLEMENTATION_SLOT)] = (
            bytes(12) + bytes.fromhex(implementation[2:])
        )

    def _type_behind(self, address: str) -> str:
        slot = self.storage.get((address, EIP1967_IMPLEMENTATION_SLOT))
        if slot is not None:
            return self.contracts[to_checksum_address(slot[-20:])]
        return self.contracts[address]

    def deploy(self, contract_type: str, args: Sequence[Any], timeout: Optional[int] = None):
        self._check_failure(contract_type)
        address = make_address(0x1000 + self._next())
        self.contracts[address] = contract_type
        if contract_type == PROXY_CONTRACT:
            implementation, data = args
            self._point_at(address, implementation)
            if data:
                self.initialized[address] = self.initialized.get(address, 0) + 1
        self.log.append(("deploy", contract_type, address, tuple(args), timeout))
        return Deployment(
            contract_type=contract_type,
            address=address,
            abi=[VERSION_ABI] + self.abis.get(contract_type, []),
            tx_hash=self._tx_hash(),
            block_number=self._counter,
            deployer=DEPLOYER,
        )

    def transact(self, contract_type, address, method, args=(), timeout=None) -> str:
        self._check_failure(method)
        if method in (UPGRADE_METHOD, UPGRADE_TO_METHOD):
            self._point_at(address, args[0])
        self.log.append(("transact", contract_type, address, method, tuple(args)))
        return self._tx_hash()

    def call(self, contract_type, address, method, args=()) -> Any:
        assert method == VERSION_METHOD
        return self.versions.get(self._type_behind(address), 1)

    def encode_call(self, contract_type, address, method, args) -> bytes:
        assert method == INITIALIZER
        return f"{method}{tuple(args)}".encode()

    def get_storage_at(self, address, slot) -> bytes:
        return self.storage.get((address, slot), bytes(32))

    def publish(self, contract_type, address) -> None:
        self.log.append(("publish", contract_type, address))


# Fixtures
@pytest.fixture
def transactor():
    return FakeTransactor()


@pytest.fixture
def registry_filepath(tmp_path):
    return tmp_path / "registry.json"


@pytest.fixture
def records(registry_filepath):
    return RecordStore(registry_filepath)


@pytest.fixture
def params():
    return DeploymentParameters.from_yaml(PARAMS_DIR / "localnet.yml", UNITS)


@pytest.fixture
def context(transactor, records, params):
    return Context(
        profile=get_profile(transactor.chain_id),
        transactor=transactor,
        records=records,
        params=params,
    )


@pytest.fixture
def engine(context):
    return DeploymentEngine(UNITS, context)
