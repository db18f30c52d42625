"""Exceptions raised while planning and executing pool deployments."""

from typing import Iterable, Optional


class DeploymentError(Exception):
    """Base exception for deployment errors."""

    unit: Optional[str] = None
    chain_id: Optional[int] = None

    def bind(self, unit: str, chain_id: int) -> "DeploymentError":
        """Attaches the failing unit and network, keeping the first binding."""
        if self.unit is None:
            self.unit = unit
            self.chain_id = chain_id
        return self

    @property
    def location(self) -> str:
        if self.unit is None:
            return ""
        return f"{self.unit} on chain {self.chain_id}"


class DeploymentConfigError(DeploymentError, ValueError):
    """Raised when parameters, units or commands are invalid."""


class UnknownTagError(DeploymentConfigError):
    """Raised when a requested tag selects no unit."""


class UnknownDependencyError(DeploymentConfigError):
    """Raised when a unit declares a dependency that is not registered."""

    def __init__(self, unit: str, dependency: str):
        self.dependency = dependency
        super().__init__(f"Unit '{unit}' depends on unknown unit '{dependency}'")


class CyclicDependencyError(DeploymentConfigError):
    """Raised when unit dependencies form a cycle."""

    def __init__(self, cycle: Iterable[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency: {' -> '.join(self.cycle)}")


class NotConfigured(DeploymentConfigError):
    """Raised when a chain has no address for a known external contract."""

    def __init__(self, logical_name: str, chain_id: int):
        self.logical_name = logical_name
        super().__init__(f"No known address for '{logical_name}' on chain id {chain_id}")
        self.chain_id = chain_id


class RecordNotFound(DeploymentError, LookupError):
    """Raised when no deployment record exists for a name and chain id."""

    def __init__(self, name: str, chain_id: int):
        self.name = name
        super().__init__(f"No deployment record for {name} on chain id {chain_id}")


class ProxyStateError(DeploymentError):
    """Raised when a proxy operation does not match the recorded proxy state."""


class AlreadyInitializedError(ProxyStateError):
    """Raised when a proxy initializer would run a second time."""


class NotUpgradeableError(ProxyStateError):
    """Raised when upgrading a contract that is not proxy-backed."""


class UpgradeVersionError(ProxyStateError):
    """Raised when a new implementation does not advance the reported version."""


class TransactionError(DeploymentError):
    """Base class for on-chain submission failures."""


class TransactionRevertedError(TransactionError):
    """Raised when a transaction or deployment reverts."""


class TransactionTimeoutError(TransactionError):
    """Raised when a transaction is not confirmed in time."""
