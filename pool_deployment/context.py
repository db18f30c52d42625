from collections import OrderedDict
from typing import Any, List, Optional

from eth_typing import ChecksumAddress

from pool_deployment.constants import EXTERNAL_CONTRACTS
from pool_deployment.exceptions import RecordNotFound
from pool_deployment.networks import NetworkProfile
from pool_deployment.params import DeploymentParameters
from pool_deployment.proxy import ProxyManager
from pool_deployment.records import DeploymentRecord, RecordStore
from pool_deployment.transactor import Transactor
from pool_deployment.units import DeploymentUnit


class Context:
    """
    Everything a unit body may use during a run.

    Built once per run and passed explicitly; `bind` gives each unit its own
    view with `unit` set.
    """

    def __init__(
        self,
        profile: NetworkProfile,
        transactor: Transactor,
        records: RecordStore,
        params: DeploymentParameters,
        proxies: Optional[ProxyManager] = None,
        unit: Optional[DeploymentUnit] = None,
    ):
        self.profile = profile
        self.transactor = transactor
        self.records = records
        self.params = params
        self.proxies = proxies or ProxyManager(transactor)
        self.unit = unit

    @property
    def chain_id(self) -> int:
        return self.profile.chain_id

    def bind(self, unit: DeploymentUnit) -> "Context":
        return Context(
            profile=self.profile,
            transactor=self.transactor,
            records=self.records,
            params=self.params,
            proxies=self.proxies,
            unit=unit,
        )

    def record_of(self, name: str) -> DeploymentRecord:
        return self.records.get(name, self.chain_id)

    def address_of(self, name: str) -> ChecksumAddress:
        """
        Address callers should use for a contract. Recorded deployments win;
        external contracts fall back to the network's known addresses.
        """
        record = self.records.find(name, self.chain_id)
        if record is not None:
            return record.address
        if name in EXTERNAL_CONTRACTS:
            return self.profile.resolve_known_address(name)
        raise RecordNotFound(name=name, chain_id=self.chain_id)

    def initializer_parameters(
        self, contract_name: Optional[str] = None
    ) -> "OrderedDict[str, Any]":
        return self.params.resolve(contract_name or self.unit.name, self)

    def initializer_args(self, contract_name: Optional[str] = None) -> List[Any]:
        return list(self.initializer_parameters(contract_name).values())
