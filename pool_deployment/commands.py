from pathlib import Path
from typing import NamedTuple, Optional, Sequence, Tuple

from pool_deployment.exceptions import DeploymentConfigError, UnknownTagError
from pool_deployment.units import DeploymentUnit, all_tags


class DeployCommand(NamedTuple):
    """A validated request to bring up the units selected by `tags`."""

    tags: Tuple[str, ...]
    params_filepath: Path
    registry_filepath: Optional[Path] = None
    autosign: bool = False
    verify: bool = False
    plan_only: bool = False

    def validate(self, units: Sequence[DeploymentUnit]) -> "DeployCommand":
        """Rejects the command before anything touches the network."""
        if not self.tags:
            raise DeploymentConfigError("At least one tag is required.")

        known_tags = set(all_tags(units))
        unknown = [tag for tag in self.tags if tag not in known_tags]
        if unknown:
            raise UnknownTagError(
                f"Unknown tag(s) {', '.join(unknown)}; choose from {', '.join(sorted(known_tags))}"
            )

        if not Path(self.params_filepath).is_file():
            raise DeploymentConfigError(f"Parameters file {self.params_filepath} does not exist.")

        if self.registry_filepath is not None and Path(self.registry_filepath).is_dir():
            raise DeploymentConfigError(f"Registry path {self.registry_filepath} is a directory.")

        if self.verify and self.plan_only:
            raise DeploymentConfigError("--verify has no effect together with --plan-only.")
        return self
