from enum import Enum
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    FrozenSet,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
)

from pool_deployment.exceptions import DeploymentConfigError, UnknownDependencyError

if TYPE_CHECKING:
    from pool_deployment.context import Context
    from pool_deployment.records import DeploymentRecord


class UnitKind(Enum):
    PROXY = "proxy"
    PLAIN = "plain"
    UPGRADE = "upgrade"
    TASK = "task"


UnitBody = Callable[["Context"], Optional["DeploymentRecord"]]


class DeploymentUnit(NamedTuple):
    """
    A named, idempotent deployment step.

    `body` receives the run context bound to this unit and returns the record
    to persist, or None for units that only send transactions.
    """

    name: str
    tags: FrozenSet[str]
    dependencies: Tuple[str, ...]
    kind: UnitKind
    body: UnitBody
    local_only: bool = False
    upgrades: Optional[str] = None

    @property
    def produces_record(self) -> bool:
        return self.kind is not UnitKind.TASK

    @property
    def record_name(self) -> Optional[str]:
        """Name of the record this unit writes."""
        if self.kind is UnitKind.TASK:
            return None
        if self.kind is UnitKind.UPGRADE:
            return self.upgrades
        return self.name


def unit(
    name: str,
    body: UnitBody,
    kind: UnitKind = UnitKind.PROXY,
    tags: Sequence[str] = (),
    dependencies: Sequence[str] = (),
    local_only: bool = False,
    upgrades: Optional[str] = None,
) -> DeploymentUnit:
    """Declares a unit; it is always selectable by its own name."""
    return DeploymentUnit(
        name=name,
        tags=frozenset(tags) | {name},
        dependencies=tuple(dependencies),
        kind=kind,
        body=body,
        local_only=local_only,
        upgrades=upgrades,
    )


def index_units(units: Sequence[DeploymentUnit]) -> Dict[str, DeploymentUnit]:
    indexed = dict()
    for u in units:
        if u.name in indexed:
            raise DeploymentConfigError(f"Unit '{u.name}' is declared more than once")
        indexed[u.name] = u
    return indexed


def validate_units(units: Sequence[DeploymentUnit]) -> List[DeploymentUnit]:
    """Checks a unit table before anything is deployed from it."""
    from pool_deployment.graph import topological_order

    indexed = index_units(units)
    for u in units:
        for dependency in u.dependencies:
            if dependency not in indexed:
                raise UnknownDependencyError(unit=u.name, dependency=dependency)
        if u.kind is UnitKind.UPGRADE:
            target = indexed.get(u.upgrades)
            if target is None or target.kind is not UnitKind.PROXY:
                raise DeploymentConfigError(
                    f"Upgrade unit '{u.name}' must name a proxy unit, got '{u.upgrades}'"
                )
        elif u.upgrades is not None:
            raise DeploymentConfigError(f"Only upgrade units may set 'upgrades' ({u.name})")

    # raises on cycles
    topological_order(units, units)
    return list(units)


def all_tags(units: Sequence[DeploymentUnit]) -> List[str]:
    tags = set()
    for u in units:
        tags.update(u.tags)
    return sorted(tags)
