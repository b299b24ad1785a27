"""
Execution of launch descriptors.
"""

import logging
import subprocess
from contextlib import ExitStack
from dataclasses import dataclass

from mpilaunch.errors import NotFoundError
from mpilaunch.managers.base import LaunchDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ExecResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def execute(launcher: LaunchDescriptor) -> ExecResult:
    """Run ``launcher`` and wait for it to terminate.

    Output is captured, unless the descriptor redirects it to files, in
    which case the corresponding field of the result is empty.

    Raises:
        NotFoundError: If the command does not exist
    """
    logger.info("Executing: %s", " ".join(launcher.argv))
    with ExitStack() as stack:
        stdout = subprocess.PIPE
        stderr = subprocess.PIPE
        if launcher.stdout_path is not None:
            stdout = stack.enter_context(open(launcher.stdout_path, "w"))
        if launcher.stderr_path is not None:
            stderr = stack.enter_context(open(launcher.stderr_path, "w"))
        try:
            res = subprocess.run(launcher.argv, stdout=stdout, stderr=stderr, text=True, check=False)
        except FileNotFoundError as e:
            raise NotFoundError(f"{launcher.command} not found: {e}") from e

    logger.debug("%s exited with code %d", launcher.command, res.returncode)
    return ExecResult(returncode=res.returncode, stdout=res.stdout or "", stderr=res.stderr or "")
