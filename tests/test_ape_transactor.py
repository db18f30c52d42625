import pytest
from ape.exceptions import ApeException, ContractLogicError
from web3.exceptions import TimeExhausted

from pool_deployment.ape_transactor import _is_already_initialized, _translate_errors
from pool_deployment.exceptions import (
    AlreadyInitializedError,
    DeploymentError,
    TransactionRevertedError,
    TransactionTimeoutError,
)


class InvalidInitialization(ContractLogicError):
    """Custom error raised by OpenZeppelin v5 initializers."""


def test_v4_initializer_revert_is_already_initialized():
    error = ContractLogicError("Initializable: contract is already initialized")
    assert _is_already_initialized(error)


def test_v5_custom_error_is_already_initialized():
    error = InvalidInitialization("0xf92ee8a9")
    assert _is_already_initialized(error)


def test_other_revert_is_not_already_initialized():
    assert not _is_already_initialized(ContractLogicError("Ownable: caller is not the owner"))


@pytest.mark.parametrize(
    "error",
    [
        ContractLogicError("Initializable: contract is already initialized"),
        InvalidInitialization("0xf92ee8a9"),
    ],
)
def test_initializer_revert_translates_to_already_initialized(error):
    with pytest.raises(AlreadyInitializedError, match="Deploying Resolver") as raised:
        with _translate_errors("Deploying Resolver"):
            raise error
    assert raised.value.__cause__ is error


def test_revert_translates_to_transaction_reverted():
    with pytest.raises(TransactionRevertedError, match="caller is not the owner"):
        with _translate_errors("Transaction Resolver.setLiquidStakingAddress"):
            raise ContractLogicError("Ownable: caller is not the owner")


def test_timeout_translates_to_transaction_timeout():
    with pytest.raises(TransactionTimeoutError, match="not confirmed in time"):
        with _translate_errors("Deploying ERC1967Proxy"):
            raise TimeExhausted("Transaction 0x01 is not in the chain after 1000 seconds")


def test_other_ape_errors_translate_to_deployment_error():
    with pytest.raises(DeploymentError, match="Call to Resolver.version failed") as raised:
        with _translate_errors("Call to Resolver.version"):
            raise ApeException("provider disconnected")
    assert isinstance(raised.value.__cause__, ApeException)


def test_unrelated_errors_pass_through():
    with pytest.raises(KeyError):
        with _translate_errors("Deploying Resolver"):
            raise KeyError("Resolver")
