"""Installed runtimes: models, discovery under the base directory and compatibility resolution."""

from .discovery import discover_containers, discover_installs, parse_install_name
from .models import (
    CONTAINER_INSTALL_PREFIX,
    MPI_INSTALL_PREFIX,
    RUNTIME_INSTALL_PREFIX,
    CompatibilityQuery,
    CompatibilityResult,
    Namespace,
    RuntimeInstall,
    dir_name,
)
from .resolver import find_compatible, resolve

__all__ = [
    "CONTAINER_INSTALL_PREFIX",
    "MPI_INSTALL_PREFIX",
    "RUNTIME_INSTALL_PREFIX",
    "CompatibilityQuery",
    "CompatibilityResult",
    "Namespace",
    "RuntimeInstall",
    "dir_name",
    "discover_containers",
    "discover_installs",
    "parse_install_name",
    "find_compatible",
    "resolve",
]
