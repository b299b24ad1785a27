"""
Extraction of the metadata stored as labels in container images.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from mpilaunch.errors import ConfigurationError, NotFoundError
from .models import ContainerInfo

logger = logging.getLogger(__name__)

# Image labels set at build time
LABEL_MPI_IMPLEMENTATION = "MPI_Implementation"
LABEL_MPI_VERSION = "MPI_Version"
LABEL_MODEL = "Model"
LABEL_MPI_DIR = "MPI_Directory"
LABEL_APP_EXE = "App_exe"


class ContainerInspector:
    """Runs ``<runtime> inspect`` on an image and maps its labels to a ContainerInfo."""

    def __init__(self, runtime_binary: str = "singularity"):
        self.runtime_binary = runtime_binary

    def inspect(self, image_path: Path, name: Optional[str] = None) -> ContainerInfo:
        """Return the metadata of ``image_path``.

        Raises:
            NotFoundError: If the runtime binary is missing
            ConfigurationError: If inspection fails or mandatory labels are missing
        """
        image_path = Path(image_path)
        labels = self.get_labels(image_path)
        logger.debug("Labels of %s: %s", image_path, labels)

        try:
            return ContainerInfo(
                name=name or image_path.stem,
                image_path=image_path,
                model=labels.get(LABEL_MODEL, "integrated"),
                mpi_id=labels.get(LABEL_MPI_IMPLEMENTATION, ""),
                mpi_version=labels.get(LABEL_MPI_VERSION, ""),
                mpi_dir=labels.get(LABEL_MPI_DIR) or None,
                app_exe=labels.get(LABEL_APP_EXE, ""),
            )
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"invalid metadata in {image_path}: {e}") from e

    def get_labels(self, image_path: Path) -> Dict[str, str]:
        cmd = [self.runtime_binary, "inspect", "--labels", "--json", str(image_path)]
        try:
            res = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            raise NotFoundError(f"{self.runtime_binary} is not available: {e}") from e
        if res.returncode != 0:
            raise ConfigurationError(f"failed to inspect {image_path}: {res.stderr.strip()}")

        try:
            payload = json.loads(res.stdout)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"cannot parse metadata of {image_path}: {e}") from e
        return _extract_labels(payload)


def _extract_labels(payload: Any) -> Dict[str, str]:
    """Labels are nested under data.attributes.labels in recent runtimes."""
    if not isinstance(payload, dict):
        return {}
    data = payload.get("data")
    if isinstance(data, dict):
        attributes = data.get("attributes", {})
        if isinstance(attributes, dict) and isinstance(attributes.get("labels"), dict):
            return {str(k): str(v) for k, v in attributes["labels"].items()}
    return {str(k): str(v) for k, v in payload.items() if not isinstance(v, (dict, list))}
