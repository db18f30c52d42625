import typing
from contextlib import contextmanager
from typing import Any, List, Optional, Sequence

from ape import chain, networks, project
from ape.api import AccountAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractTransactionHandler
from ape.exceptions import ApeException, ContractLogicError
from ape.exceptions import TransactionError as ApeTransactionError
from ape.exceptions import TransactionNotFoundError
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from ethpm_types import MethodABI
from web3.auto import w3
from web3.exceptions import TimeExhausted

from pool_deployment.confirm import _continue
from pool_deployment.constants import ALREADY_INITIALIZED_MARKERS
from pool_deployment.exceptions import (
    AlreadyInitializedError,
    DeploymentConfigError,
    DeploymentError,
    TransactionRevertedError,
    TransactionTimeoutError,
)
from pool_deployment.transactor import Deployment, Transactor


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise DeploymentConfigError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise DeploymentConfigError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise DeploymentConfigError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _is_already_initialized(error: ContractLogicError) -> bool:
    reported = f"{type(error).__name__} {error}"
    return any(marker in reported for marker in ALREADY_INITIALIZED_MARKERS)


@contextmanager
def _translate_errors(description: str):
    """Surfaces ape and web3 transaction failures as deployment errors."""
    try:
        yield
    except ContractLogicError as e:
        if _is_already_initialized(e):
            raise AlreadyInitializedError(f"{description}: contract is already initialized") from e
        raise TransactionRevertedError(f"{description} reverted: {e}") from e
    except (TransactionNotFoundError, TimeExhausted) as e:
        raise TransactionTimeoutError(f"{description} was not confirmed in time: {e}") from e
    except ApeTransactionError as e:
        raise TransactionRevertedError(f"{description} failed: {e}") from e
    except ApeException as e:
        raise DeploymentError(f"{description} failed: {e}") from e


@contextmanager
def _acceptance_timeout(timeout: Optional[int]):
    """Temporarily extends how long ape waits for a transaction to be included."""
    network = networks.provider.network
    original = network.transaction_acceptance_timeout
    if timeout is None or timeout <= original:
        yield
        return

    network.config.transaction_acceptance_timeout = timeout
    try:
        yield
    finally:
        network.config.transaction_acceptance_timeout = original


class ApeTransactor(Transactor):
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    @property
    def chain_id(self) -> int:
        return networks.provider.network.chain_id

    @property
    def deployer_address(self) -> ChecksumAddress:
        return to_checksum_address(self._account.address)

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        """Returns the deployment kwargs."""
        return {"publish": False}

    def deploy(
        self, contract_type: str, args: Sequence[Any], timeout: Optional[int] = None
    ) -> Deployment:
        container = get_contract_container(contract_type)
        kwargs = self._get_kwargs()
        with _translate_errors(f"Deployment of {contract_type}"), _acceptance_timeout(timeout):
            instance = self._account.deploy(container, *args, **kwargs)

        receipt = instance.receipt
        return Deployment(
            contract_type=contract_type,
            address=to_checksum_address(instance.address),
            abi=[
                entry.model_dump(mode="json", by_alias=True)
                for entry in container.contract_type.abi
            ],
            tx_hash=receipt.txn_hash,
            block_number=receipt.block_number,
            deployer=receipt.transaction.sender,
        )

    def _transact(self, method: ContractTransactionHandler, *args) -> Any:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account)

    def transact(
        self,
        contract_type: str,
        address: ChecksumAddress,
        method: str,
        args: Sequence[Any] = (),
        timeout: Optional[int] = None,
    ) -> str:
        instance = get_contract_container(contract_type).at(address)
        handler = getattr(instance, method)
        with _translate_errors(f"{contract_type}.{method}"), _acceptance_timeout(timeout):
            receipt = self._transact(handler, *args)
        return receipt.txn_hash

    def call(
        self, contract_type: str, address: ChecksumAddress, method: str, args: Sequence[Any] = ()
    ) -> Any:
        with _translate_errors(f"Call to {contract_type}.{method}"):
            instance = get_contract_container(contract_type).at(address)
            return getattr(instance, method)(*args)

    def encode_call(
        self, contract_type: str, address: ChecksumAddress, method: str, args: Sequence[Any]
    ) -> bytes:
        instance = get_contract_container(contract_type).at(address)
        handler = getattr(instance, method)
        _validate_method_args(method_abis=handler.abis, args=list(args))
        with _translate_errors(f"Encoding {contract_type}.{method}"):
            return bytes(handler.encode_input(*args))

    def get_storage_at(self, address: ChecksumAddress, slot: int) -> bytes:
        with _translate_errors(f"Reading storage of {address}"):
            return bytes(chain.provider.get_storage_at(address=address, slot=slot))

    def publish(self, contract_type: str, address: ChecksumAddress) -> None:
        explorer = networks.provider.network.explorer
        if explorer is None:
            raise DeploymentConfigError(
                f"No block explorer configured for {networks.provider.network.name}."
            )
        print(f"(i) Publishing {contract_type} at {address}...")
        explorer.publish_contract(address)
