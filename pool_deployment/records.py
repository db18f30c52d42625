import json
import os
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from eth_typing import ABI

from pool_deployment.exceptions import RecordNotFound
from pool_deployment.transactor import Deployment
from pool_deployment.utils import _load_json

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class DeploymentRecord(NamedTuple):
    """Where a contract lives on one chain; for proxies, `address` is the proxy."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    abi: ABI
    contract_type: str
    tx_hash: str
    block_number: int
    deployer: str
    implementation: Optional[ChecksumAddress] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_proxy(self) -> bool:
        return bool(self.implementation)

    @classmethod
    def from_deployment(
        cls,
        name: ContractName,
        chain_id: ChainId,
        deployment: Deployment,
        implementation: Optional[Deployment] = None,
    ) -> "DeploymentRecord":
        """
        Builds a record from a confirmed deployment. For proxies the ABI and
        contract type come from the implementation, the address from the proxy.
        """
        artifact = implementation or deployment
        return cls(
            chain_id=chain_id,
            name=name,
            address=to_checksum_address(deployment.address),
            abi=list(artifact.abi),
            contract_type=artifact.contract_type,
            tx_hash=deployment.tx_hash,
            block_number=int(deployment.block_number),
            deployer=deployment.deployer,
            implementation=to_checksum_address(implementation.address) if implementation else None,
        )

    def upgraded(self, implementation: Deployment) -> "DeploymentRecord":
        """Returns this proxy record pointing at a new implementation."""
        return self._replace(
            abi=list(implementation.abi),
            contract_type=implementation.contract_type,
            implementation=to_checksum_address(implementation.address),
        )


def _entry_to_json(record: DeploymentRecord) -> Dict:
    entry_abi = list(record.abi)
    entry_abi.sort(key=lambda d: (d["type"], d.get("name", "")))
    data = {
        "address": record.address,
        "abi": entry_abi,
        "contract_type": record.contract_type,
        "tx_hash": record.tx_hash,
        "block_number": int(record.block_number),
        "deployer": record.deployer,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
    if record.implementation:
        data["implementation"] = record.implementation
    return data


def _entry_from_json(chain_id: str, name: str, artifacts: Dict) -> DeploymentRecord:
    return DeploymentRecord(
        chain_id=int(chain_id),
        name=name,
        address=artifacts["address"],
        abi=artifacts["abi"],
        contract_type=artifacts.get("contract_type", name),
        tx_hash=artifacts["tx_hash"],
        block_number=artifacts["block_number"],
        deployer=artifacts["deployer"],
        implementation=artifacts.get("implementation"),
        created_at=artifacts.get("created_at"),
        updated_at=artifacts.get("updated_at"),
    )


def read_registry(filepath: Path) -> List[DeploymentRecord]:
    data = _load_json(filepath)
    registry_entries = list()
    for chain_id, entries in data.items():
        for contract_name, artifacts in entries.items():
            registry_entries.append(_entry_from_json(chain_id, contract_name, artifacts))
    return registry_entries


def write_registry(entries: List[DeploymentRecord], filepath: Path) -> Path:
    """
    Replaces the registry file with the given entries.

    The data is written to a sibling temporary file which is flushed to disk
    and then renamed over the registry, so readers never see a partial file.
    """
    # Sort registry entries to enforce common order
    entries = sorted(entries, key=lambda entry: (str(entry.chain_id), entry.name))

    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.name] = _entry_to_json(entry)

    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_filepath = filepath.with_suffix(".temp.json")
    try:
        with open(temp_filepath, "w") as file:
            json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
            file.flush()
            os.fsync(file.fileno())
        os.replace(temp_filepath, filepath)
    finally:
        if temp_filepath.exists():
            temp_filepath.unlink()
    return filepath


class RecordStore:
    """
    Persistent deployment records, at most one per (contract name, chain id).

    Backed by a registry JSON file keyed by chain id and then contract name.
    Every `put` rewrites the file before returning.
    """

    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)
        self._records: Dict[ChainId, Dict[ContractName, DeploymentRecord]] = defaultdict(dict)
        if self.filepath.exists():
            for record in read_registry(self.filepath):
                self._records[record.chain_id][record.name] = record

    def find(self, name: ContractName, chain_id: ChainId) -> Optional[DeploymentRecord]:
        return self._records.get(chain_id, {}).get(name)

    def get(self, name: ContractName, chain_id: ChainId) -> DeploymentRecord:
        record = self.find(name, chain_id)
        if record is None:
            raise RecordNotFound(name=name, chain_id=chain_id)
        return record

    def exists(self, name: ContractName, chain_id: ChainId) -> bool:
        return self.find(name, chain_id) is not None

    def records(self, chain_id: Optional[ChainId] = None) -> List[DeploymentRecord]:
        return [
            record
            for record_chain_id, records in sorted(self._records.items())
            for record in records.values()
            if chain_id is None or record_chain_id == chain_id
        ]

    def put(self, record: DeploymentRecord) -> DeploymentRecord:
        """Inserts or overwrites the record for its (name, chain id) key."""
        existing = self.find(record.name, record.chain_id)
        now = _now()
        record = record._replace(
            created_at=existing.created_at if existing else (record.created_at or now),
            updated_at=now,
        )

        key = (record.name, record.chain_id)
        entries = [r for r in self.records() if (r.name, r.chain_id) != key]
        entries.append(record)
        # the in-memory view only changes once the file is durable
        write_registry(entries=entries, filepath=self.filepath)
        self._records[record.chain_id][record.name] = record
        return record
