import json
from pathlib import Path
from typing import Dict

import yaml

from pool_deployment.constants import ARTIFACTS_DIR, PARAMS_DIR
from pool_deployment.exceptions import DeploymentConfigError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the artifact file."""
    artifact_config = config.get("artifacts", {})
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise DeploymentConfigError("artifact filename is not set in params file.")
    return artifact_dir / filename


def params_filepath_from_network(network: str) -> Path:
    p = PARAMS_DIR / f"{network}.yml"
    if not p.exists():
        raise DeploymentConfigError(f"No deployment parameters found for network '{network}'")
    return p
