import typing
from abc import ABC, abstractmethod
from collections import OrderedDict, namedtuple
from pathlib import Path
from typing import Any, List, Sequence

from pool_deployment.constants import EXTERNAL_CONTRACTS
from pool_deployment.exceptions import DeploymentConfigError
from pool_deployment.graph import topological_order
from pool_deployment.networks import is_local_chain
from pool_deployment.units import DeploymentUnit, index_units
from pool_deployment.utils import _load_yaml, get_artifact_filepath

if typing.TYPE_CHECKING:
    from pool_deployment.context import Context

CONTRACT_INITIALIZER_PARAMETER_KEY = "initializer"

PROXY_STRATEGY = "proxy"
PLAIN_STRATEGY = "plain"
STRATEGIES = [PROXY_STRATEGY, PLAIN_STRATEGY]


class VariableContext:
    def __init__(
        self,
        unit_names: List[str],
        contract_name: str,
        dependencies: typing.Collection[str],
        constants: typing.Dict[str, Any] = None,
    ):
        self.unit_names = unit_names or list()
        self.contract_name = contract_name
        self.dependencies = dependencies
        self.constants = constants or dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: "Context") -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        return isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: "Context") -> Any:
        return context.transactor.deployer_address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(f"Constant '{constant_name}' not found in deployment file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, context: "Context") -> Any:
        return self.constant_value


class ContractName(Variable):
    @classmethod
    def is_contract_name(cls, value: str, context: VariableContext) -> bool:
        """Returns True if the variable names a deployment unit or a known external contract."""
        return value in context.unit_names or value in EXTERNAL_CONTRACTS

    def __init__(self, contract_name: str, context: VariableContext):
        external = contract_name in EXTERNAL_CONTRACTS
        if contract_name not in context.unit_names and not external:
            raise DeploymentConfigError(f"Contract name {contract_name} not found")
        if contract_name in context.unit_names and contract_name not in context.dependencies:
            # the address would not exist yet when the unit runs
            raise DeploymentConfigError(
                f"{context.contract_name} references {contract_name} "
                "which is not one of its dependencies"
            )

        self.contract_name = contract_name
        self.external = external

    def resolve(self, context: "Context") -> Any:
        """Resolves a contract address; proxied contracts resolve to the proxy."""
        return context.address_of(self.contract_name)


def _resolve_param(value: Any, context: "Context") -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


def _resolve_params(parameters: OrderedDict, context: "Context") -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value, context)

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif ContractName.is_contract_name(variable, context):
        return ContractName(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: OrderedDict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


def _iter_variables(value: Any) -> typing.Iterator[Variable]:
    if isinstance(value, list):
        for v in value:
            yield from _iter_variables(v)
    elif isinstance(value, Variable):
        yield value


def _transitive_dependencies(unit: DeploymentUnit, units: Sequence[DeploymentUnit]) -> List[str]:
    return [u.name for u in topological_order([unit], units) if u.name != unit.name]


def validate_config(config: typing.Dict) -> typing.Dict:
    """Checks the top-level structure of a parameters file."""
    print("Validating parameters YAML...")
    if not isinstance(config, dict):
        raise DeploymentConfigError("Malformed parameters YAML.")

    deployment = config.get("deployment")
    if not deployment:
        raise DeploymentConfigError("deployment is not set in params file.")

    if not deployment.get("chain_id"):
        raise DeploymentConfigError("chain_id is not set in params file.")

    if "contracts" not in config:
        raise DeploymentConfigError("Parameters file missing 'contracts' field.")

    strategy = deployment.get("strategy", PROXY_STRATEGY)
    if strategy not in STRATEGIES:
        raise DeploymentConfigError(f"Unknown deployment strategy '{strategy}'.")

    chain_id = int(deployment["chain_id"])
    if strategy == PLAIN_STRATEGY and not is_local_chain(chain_id):
        raise DeploymentConfigError(
            f"Plain deployments are only allowed on local networks, not chain id {chain_id}."
        )
    return deployment


class DeploymentParameters:
    """Validated deployment parameters of one network."""

    def __init__(
        self,
        config: typing.Dict,
        units: Sequence[DeploymentUnit],
        path: typing.Optional[Path] = None,
    ):
        deployment = validate_config(config)
        self.path = path
        self.config = config
        self.name = deployment.get("name", str(deployment["chain_id"]))
        self.chain_id = int(deployment["chain_id"])
        self.strategy = deployment.get("strategy", PROXY_STRATEGY)
        self.registry_filepath = get_artifact_filepath(config=config)

        constants = config.get("constants") or dict()
        # Little trick to expose constants as attributes (e.g., params.constants.FOO)
        _Constants = namedtuple("_Constants", list(constants))
        self.constants = _Constants(**constants)

        self.initializer_parameters = self._process_contracts(
            contracts=config["contracts"] or list(), constants=constants, units=units
        )

    @classmethod
    def from_yaml(cls, filepath: Path, units: Sequence[DeploymentUnit]) -> "DeploymentParameters":
        config = _load_yaml(filepath)
        return cls(config=config, units=units, path=filepath)

    @property
    def use_proxies(self) -> bool:
        return self.strategy == PROXY_STRATEGY

    @staticmethod
    def _process_contracts(
        contracts: List[Any], constants: typing.Dict, units: Sequence[DeploymentUnit]
    ) -> OrderedDict:
        indexed = index_units(units)
        unit_names = list(indexed)

        contracts_config = OrderedDict()
        for contract_info in contracts:
            if isinstance(contract_info, str):
                contract_name, contract_data = contract_info, dict()
            elif isinstance(contract_info, dict) and len(contract_info) == 1:
                contract_name, contract_data = list(contract_info.items())[0]  # only one entry
                contract_data = contract_data or dict()
            else:
                raise DeploymentConfigError("Malformed initializer parameters YAML.")

            unit = indexed.get(contract_name)
            if unit is None or not unit.produces_record:
                raise DeploymentConfigError(f"No deployable unit named {contract_name}")

            raw_values = contract_data.get(CONTRACT_INITIALIZER_PARAMETER_KEY) or dict()
            if not isinstance(raw_values, dict):
                raise DeploymentConfigError(
                    f"Malformed initializer parameter config for {contract_name}."
                )
            variable_context = VariableContext(
                unit_names=unit_names,
                contract_name=contract_name,
                dependencies=_transitive_dependencies(unit, units),
                constants=constants,
            )
            contracts_config[contract_name] = _process_raw_values(
                OrderedDict(raw_values), variable_context
            )

        return contracts_config

    def resolve(self, contract_name: str, context: "Context") -> OrderedDict:
        """Resolves the initializer parameters for a single contract."""
        parameters = self.initializer_parameters.get(contract_name, OrderedDict())
        return _resolve_params(parameters, context)

    def external_references(self, contract_name: str) -> List[str]:
        """Names of pre-existing contracts a unit's parameters point at."""
        references = list()
        for value in self.initializer_parameters.get(contract_name, OrderedDict()).values():
            for variable in _iter_variables(value):
                if isinstance(variable, ContractName) and variable.external:
                    references.append(variable.contract_name)
        return references
