"""
Discovery of the runtimes and containers installed under the base directory.

Directory listing is the only I/O performed here.
"""

import logging
from pathlib import Path
from typing import List, Optional

from mpilaunch.errors import NotFoundError
from .models import CONTAINER_INSTALL_PREFIX, Namespace, RuntimeInstall

logger = logging.getLogger(__name__)


def _list_entries(base_dir: Path) -> List[str]:
    base_dir = Path(base_dir)
    if not base_dir.is_dir():
        raise NotFoundError(f"{base_dir} does not exist")
    return sorted(entry.name for entry in base_dir.iterdir())


def parse_install_name(name: str, namespace: Namespace) -> Optional[tuple]:
    """Split ``<prefix><id>-<version>`` into (id, version), None if it does not match."""
    if not name.startswith(namespace.prefix):
        return None
    tail = name[len(namespace.prefix):]
    if "-" not in tail:
        logger.debug("Ignoring %s: no version separator", name)
        return None
    id, version = tail.split("-", 1)
    if not id or not version:
        return None
    return id, version


def discover_installs(base_dir: Path, namespace: Namespace) -> List[RuntimeInstall]:
    """List the installs of a namespace found under ``base_dir``.

    Raises:
        NotFoundError: If ``base_dir`` does not exist
    """
    installs = []
    for name in _list_entries(base_dir):
        parsed = parse_install_name(name, namespace)
        if parsed is None:
            continue
        id, version = parsed
        installs.append(RuntimeInstall.from_install_dir(Path(base_dir) / name, id, version))
    logger.debug("Found %d %s install(s) in %s", len(installs), namespace.value, base_dir)
    return installs


def discover_containers(base_dir: Path) -> List[str]:
    """List the names of the containers stored under ``base_dir``."""
    return [
        name[len(CONTAINER_INSTALL_PREFIX):]
        for name in _list_entries(base_dir)
        if name.startswith(CONTAINER_INSTALL_PREFIX) and len(name) > len(CONTAINER_INSTALL_PREFIX)
    ]
