"""
Dependency ordering of deployment units.

Units are selected by tag and expanded with everything they transitively
depend on. The order is a depth-first post-order: each unit comes after all
of its dependencies, and ties are broken by declaration order so that the
same request always yields the same sequence.
"""

from typing import Dict, Iterable, List, Sequence, Set

from pool_deployment.exceptions import (
    CyclicDependencyError,
    UnknownDependencyError,
    UnknownTagError,
)
from pool_deployment.units import DeploymentUnit, index_units


def select(
    requested_tags: Iterable[str], all_units: Sequence[DeploymentUnit]
) -> List[DeploymentUnit]:
    """Returns the units whose tags intersect the requested tags, in declaration order."""
    requested = set(requested_tags)
    known = set()
    for u in all_units:
        known.update(u.tags)
    unknown = sorted(requested - known)
    if unknown:
        raise UnknownTagError(f"No deployment unit is tagged {', '.join(unknown)}")
    return [u for u in all_units if u.tags & requested]


def topological_order(
    seeds: Sequence[DeploymentUnit], all_units: Sequence[DeploymentUnit]
) -> List[DeploymentUnit]:
    indexed = index_units(all_units)
    position: Dict[str, int] = {u.name: i for i, u in enumerate(all_units)}

    ordered: List[DeploymentUnit] = list()
    done: Set[str] = set()
    path: List[str] = list()

    def visit(current: DeploymentUnit) -> None:
        if current.name in done:
            return
        if current.name in path:
            cycle = path[path.index(current.name) :] + [current.name]
            raise CyclicDependencyError(cycle)

        path.append(current.name)
        for dependency in current.dependencies:
            if dependency not in indexed:
                raise UnknownDependencyError(unit=current.name, dependency=dependency)
        for dependency in sorted(current.dependencies, key=position.__getitem__):
            visit(indexed[dependency])
        path.pop()

        done.add(current.name)
        ordered.append(current)

    for seed in sorted(seeds, key=lambda u: position[u.name]):
        visit(seed)
    return ordered


def resolve(
    requested_tags: Iterable[str], all_units: Sequence[DeploymentUnit]
) -> List[DeploymentUnit]:
    """Expands the requested tags into the ordered units a run must execute."""
    return topological_order(select(requested_tags, all_units), all_units)
