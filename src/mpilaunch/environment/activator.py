"""
Activation of installs in the invoking shell's environment.

A process cannot modify the environment of its parent shell. Instead the
new PATH and LD_LIBRARY_PATH are written to a per-session hand-off file that
the shell wrapper sources once we exit. The file must have been created by
the wrapper beforehand; its absence means the tool was not initialized.
"""

import logging
import os
from pathlib import Path
from typing import List, MutableMapping, Optional, Tuple

from mpilaunch.errors import ConfigurationError
from mpilaunch.installs.discovery import parse_install_name
from mpilaunch.installs.models import Namespace, RuntimeInstall
from .session import SessionIdentityProvider

logger = logging.getLogger(__name__)

HANDOFF_FILE_PREFIX = "mpilaunch_"
PATH_VAR = "PATH"
LDLIB_VAR = "LD_LIBRARY_PATH"


def split_env_list(value: Optional[str]) -> List[str]:
    return [entry for entry in (value or "").split(":") if entry]


def remove_prefixed(entries: List[str], prefix: str) -> List[str]:
    """Drop every entry that belongs to an install with the given prefix, keeping order."""
    return [entry for entry in entries if prefix not in entry]


class EnvironmentActivator:
    """Loads and unloads installs, at most one per namespace at any time."""

    def __init__(self, identity: SessionIdentityProvider, handoff_dir: Path = Path("/tmp"),
                 environ: Optional[MutableMapping[str, str]] = None):
        self.identity = identity
        self.handoff_dir = Path(handoff_dir)
        # Kept in sync with what we write so that later steps of this process
        # (and the processes it spawns) run with the activated install.
        self.environ = os.environ if environ is None else environ

    def handoff_file(self) -> Path:
        """Path of this session's hand-off file.

        Raises:
            SessionLookupError: If the session cannot be identified
        """
        return self.handoff_dir / f"{HANDOFF_FILE_PREFIX}{self.identity.identify()}"

    def is_initialized(self) -> bool:
        return self.handoff_file().exists()

    def current(self) -> Tuple[List[str], List[str]]:
        return split_env_list(self.environ.get(PATH_VAR)), split_env_list(self.environ.get(LDLIB_VAR))

    def cleaned(self, namespace: Namespace) -> Tuple[List[str], List[str]]:
        path, ldlib = self.current()
        return remove_prefixed(path, namespace.prefix), remove_prefixed(ldlib, namespace.prefix)

    def load(self, namespace: Namespace, install: RuntimeInstall) -> Path:
        """Make ``install`` the active one for ``namespace``.

        Returns:
            The hand-off file that was written

        Raises:
            ConfigurationError: If the install is malformed or the hand-off
                file does not exist
        """
        if not isinstance(install, RuntimeInstall):
            raise ConfigurationError(f"invalid install descriptor: {install!r}")
        for attr in ("bin_dir", "lib_dir"):
            if str(getattr(install, attr)) in ("", "."):
                raise ConfigurationError(f"install {install.label} has no {attr}")

        handoff = self._existing_handoff_file()
        path, ldlib = self.cleaned(namespace)
        path.insert(0, str(install.bin_dir))
        ldlib.insert(0, str(install.lib_dir))

        self._write(handoff, path, ldlib)
        logger.info("Loaded %s %s", namespace.value, install.label)
        return handoff

    def unload(self, namespace: Namespace) -> Path:
        """Remove every install of ``namespace`` from the environment.

        Raises:
            ConfigurationError: If the hand-off file does not exist
        """
        handoff = self._existing_handoff_file()
        path, ldlib = self.cleaned(namespace)
        self._write(handoff, path, ldlib)
        logger.info("Unloaded %s", namespace.value)
        return handoff

    def loaded(self, namespace: Namespace) -> Optional[str]:
        """Return ``<id>:<version>`` of the install of ``namespace`` on PATH, if any."""
        path, _ = self.current()
        for entry in path:
            for part in Path(entry).parts:
                parsed = parse_install_name(part, namespace)
                if parsed is not None:
                    return f"{parsed[0]}:{parsed[1]}"
        return None

    def _existing_handoff_file(self) -> Path:
        handoff = self.handoff_file()
        if not handoff.exists():
            raise ConfigurationError(
                f"file {handoff} does not exist, the shell session was not initialized"
            )
        return handoff

    def _write(self, handoff: Path, path: List[str], ldlib: List[str]) -> None:
        path_value = ":".join(path)
        ldlib_value = ":".join(ldlib)
        handoff.write_text(
            f"export {PATH_VAR}={path_value}\nexport {LDLIB_VAR}={ldlib_value}\n"
        )
        self.environ[PATH_VAR] = path_value
        self.environ[LDLIB_VAR] = ldlib_value
        logger.debug("Updated %s", handoff)
