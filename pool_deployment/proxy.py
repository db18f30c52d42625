"""
Plain and proxy-backed (UUPS / ERC-1967) contract deployments.

A proxy-backed contract is reached through a permanent proxy address that
delegates to a replaceable implementation. The manager creates records for
the record store but never reads from or writes to it.
"""

from enum import Enum
from typing import Any, Optional, Sequence, Union

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from packaging.version import InvalidVersion, Version

from pool_deployment.constants import (
    EIP1967_IMPLEMENTATION_SLOT,
    INITIALIZER,
    PROXY_CONFIRMATION_TIMEOUT,
    PROXY_CONTRACT,
    UPGRADE_METHOD,
    UPGRADE_TO_METHOD,
    VERSION_METHOD,
)
from pool_deployment.exceptions import (
    AlreadyInitializedError,
    NotUpgradeableError,
    ProxyStateError,
    UpgradeVersionError,
)
from pool_deployment.records import DeploymentRecord
from pool_deployment.transactor import Transactor


class ProxyState(Enum):
    NOT_DEPLOYED = "not-deployed"
    PLAIN = "plain"
    DEPLOYED = "deployed"


def proxy_state(record: Optional[DeploymentRecord]) -> ProxyState:
    """Derives the proxy state of a contract from its record."""
    if record is None:
        return ProxyState.NOT_DEPLOYED
    if record.is_proxy:
        return ProxyState.DEPLOYED
    return ProxyState.PLAIN


def _comparable_version(value: Any) -> Union[int, Version]:
    if isinstance(value, bool):
        raise UpgradeVersionError(f"Unrecognized version {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).rstrip(b"\x00").decode()
    if isinstance(value, str):
        try:
            return Version(value.strip().lstrip("vV"))
        except InvalidVersion:
            raise UpgradeVersionError(f"Unrecognized version {value!r}")
    raise UpgradeVersionError(f"Unrecognized version {value!r}")


def _has_function(abi: Sequence[dict], name: str) -> bool:
    return any(item.get("type") == "function" and item.get("name") == name for item in abi)


def check_version_increases(current: Any, new: Any) -> None:
    """Raises UpgradeVersionError unless `new` is strictly greater than `current`."""
    current_version, new_version = _comparable_version(current), _comparable_version(new)
    if type(current_version) is not type(new_version):
        raise UpgradeVersionError(f"Cannot compare versions {current!r} and {new!r}")
    if not new_version > current_version:
        raise UpgradeVersionError(
            f"Upgrade must advance the version, current is {current!r} and new is {new!r}"
        )


class ProxyManager:
    """Deploys, initializes and upgrades contracts behind ERC-1967 proxies."""

    def __init__(
        self, transactor: Transactor, confirmation_timeout: int = PROXY_CONFIRMATION_TIMEOUT
    ):
        self.transactor = transactor
        self.confirmation_timeout = confirmation_timeout

    def implementation_of(self, proxy_address: ChecksumAddress) -> ChecksumAddress:
        slot = self.transactor.get_storage_at(proxy_address, EIP1967_IMPLEMENTATION_SLOT)
        if not any(slot):
            raise ProxyStateError(
                f"Implementation slot for contract at {proxy_address} is empty. "
                "Are you sure this is an EIP1967-compatible proxy?"
            )
        return to_checksum_address(bytes(slot)[-20:])

    def _check_implementation(self, proxy_address: ChecksumAddress, expected: ChecksumAddress):
        actual = self.implementation_of(proxy_address)
        if actual != to_checksum_address(expected):
            raise ProxyStateError(
                f"Proxy at {proxy_address} points at {actual}, expected {expected}"
            )

    def deploy_plain(
        self, name: str, chain_id: int, contract_type: str, args: Sequence[Any]
    ) -> DeploymentRecord:
        print(f"\nDeploying {contract_type} (no proxy).")
        deployment = self.transactor.deploy(contract_type, list(args))
        return DeploymentRecord.from_deployment(name=name, chain_id=chain_id, deployment=deployment)

    def deploy_proxy(
        self,
        name: str,
        chain_id: int,
        contract_type: str,
        args: Sequence[Any],
        state: ProxyState = ProxyState.NOT_DEPLOYED,
    ) -> DeploymentRecord:
        """
        Deploys an implementation and a proxy whose constructor runs the
        implementation's initializer, so initialization happens exactly once.
        """
        if state is not ProxyState.NOT_DEPLOYED:
            raise AlreadyInitializedError(
                f"{name} is already deployed on chain id {chain_id} ({state.value}); "
                "refusing to initialize it again"
            )

        implementation = self.transactor.deploy(
            contract_type, [], timeout=self.confirmation_timeout
        )
        data = self.transactor.encode_call(
            contract_type, implementation.address, INITIALIZER, list(args)
        )
        print(f"\nDeploying {PROXY_CONTRACT} contract to proxy {contract_type}.")
        proxy = self.transactor.deploy(
            PROXY_CONTRACT, [implementation.address, data], timeout=self.confirmation_timeout
        )
        self._check_implementation(proxy.address, implementation.address)
        print(
            f"\nWrapping {contract_type} into {PROXY_CONTRACT} at {proxy.address} "
            f"(implementation {implementation.address})."
        )
        return DeploymentRecord.from_deployment(
            name=name, chain_id=chain_id, deployment=proxy, implementation=implementation
        )

    def upgrade_proxy(
        self,
        record: DeploymentRecord,
        contract_type: str,
        initializer: Optional[str] = None,
        args: Sequence[Any] = (),
    ) -> DeploymentRecord:
        """
        Points an existing proxy at a new implementation of `contract_type`.

        The new implementation's `version()` must be strictly greater than the
        version currently reported through the proxy, otherwise the proxy is
        left untouched. The proxy address never changes.
        """
        if proxy_state(record) is not ProxyState.DEPLOYED:
            raise NotUpgradeableError(
                f"{record.name} at {record.address} is not proxy-backed and cannot be upgraded"
            )
        self._check_implementation(record.address, record.implementation)

        current_version = self.transactor.call(record.contract_type, record.address, VERSION_METHOD)
        implementation = self.transactor.deploy(
            contract_type, [], timeout=self.confirmation_timeout
        )
        new_version = self.transactor.call(contract_type, implementation.address, VERSION_METHOD)
        check_version_increases(current_version, new_version)

        data = b""
        if initializer:
            data = self.transactor.encode_call(
                contract_type, implementation.address, initializer, list(args)
            )
        print(
            f"\nUpgrading {record.name} at {record.address} from {record.contract_type} "
            f"({current_version}) to {contract_type} ({new_version})."
        )
        if data or not _has_function(implementation.abi, UPGRADE_TO_METHOD):
            method, upgrade_args = UPGRADE_METHOD, [implementation.address, data]
        else:
            method, upgrade_args = UPGRADE_TO_METHOD, [implementation.address]
        self.transactor.transact(
            contract_type,
            record.address,
            method,
            upgrade_args,
            timeout=self.confirmation_timeout,
        )
        self._check_implementation(record.address, implementation.address)

        reported_version = self.transactor.call(contract_type, record.address, VERSION_METHOD)
        if _comparable_version(reported_version) != _comparable_version(new_version):
            raise UpgradeVersionError(
                f"{record.name} reports version {reported_version!r} after the upgrade, "
                f"expected {new_version!r}"
            )
        return record.upgraded(implementation)
