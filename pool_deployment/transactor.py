from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from eth_typing import ChecksumAddress


class Deployment(NamedTuple):
    """A confirmed contract creation."""

    contract_type: str
    address: ChecksumAddress
    abi: List[Dict]
    tx_hash: str
    block_number: int
    deployer: ChecksumAddress


class Transactor(ABC):
    """
    The signing account on the connected network.

    Every call blocks until the transaction is confirmed, so callers issue
    one transaction at a time from a single account.
    """

    @property
    @abstractmethod
    def chain_id(self) -> int:
        raise NotImplementedError

    @property
    @abstractmethod
    def deployer_address(self) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def deploy(
        self, contract_type: str, args: Sequence[Any], timeout: Optional[int] = None
    ) -> Deployment:
        """Deploys a contract and waits for its confirmation."""
        raise NotImplementedError

    @abstractmethod
    def transact(
        self,
        contract_type: str,
        address: ChecksumAddress,
        method: str,
        args: Sequence[Any] = (),
        timeout: Optional[int] = None,
    ) -> str:
        """Sends a transaction, waits for its confirmation and returns its hash."""
        raise NotImplementedError

    @abstractmethod
    def call(
        self, contract_type: str, address: ChecksumAddress, method: str, args: Sequence[Any] = ()
    ) -> Any:
        raise NotImplementedError

    @abstractmethod
    def encode_call(
        self, contract_type: str, address: ChecksumAddress, method: str, args: Sequence[Any]
    ) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def get_storage_at(self, address: ChecksumAddress, slot: int) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def publish(self, contract_type: str, address: ChecksumAddress) -> None:
        """Publishes contract sources to a block explorer."""
        raise NotImplementedError
