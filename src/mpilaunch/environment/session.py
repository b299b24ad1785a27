"""
Identity of the interactive shell session that invoked the tool.

The tool is started by a small shell wrapper, itself started by the user's
shell, so the session is identified by the parent of our parent process.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Protocol

from mpilaunch.errors import SessionLookupError

logger = logging.getLogger(__name__)


class SessionIdentityProvider(Protocol):
    def identify(self) -> int:
        ...


class ProcessTreeIdentity:
    """Reads the ``PPid:`` entry of our parent's status file under /proc."""

    def __init__(self, proc_root: str = "/proc", ppid: Optional[int] = None):
        self.proc_root = Path(proc_root)
        self._ppid = ppid

    def identify(self) -> int:
        ppid = self._ppid if self._ppid is not None else os.getppid()
        status_file = self.proc_root / str(ppid) / "status"
        try:
            content = status_file.read_text()
        except OSError as e:
            raise SessionLookupError(f"failed to open {status_file}: {e}") from e

        for line in content.splitlines():
            if line.startswith("PPid:"):
                value = line.split(":", 1)[1].strip()
                if value.isdigit():
                    logger.debug("Session identifier is %s", value)
                    return int(value)
        raise SessionLookupError(f"no PPid entry in {status_file}")


class StaticIdentity:
    """Fixed identifier, used for explicit overrides and tests."""

    def __init__(self, value: int):
        self.value = value

    def identify(self) -> int:
        return self.value
