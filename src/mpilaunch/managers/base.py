"""Base class for job managers.

Defines the job model and the interface every job manager implements so
the launch pipeline stays independent of where the job actually runs
(directly on the host, through Slurm, ...).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from mpilaunch.container.models import ContainerInfo
from mpilaunch.core.system import SystemConfig
from mpilaunch.errors import ConfigurationError, JobStateError
from mpilaunch.installs.models import RuntimeInstall

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    CREATED = "created"
    SCRIPT_GENERATED = "script_generated"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    JobState.CREATED: {JobState.SCRIPT_GENERATED, JobState.SUBMITTED},
    JobState.SCRIPT_GENERATED: {JobState.SUBMITTED},
    JobState.SUBMITTED: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


@dataclass
class Job:
    """A single containerized MPI job, created per launch."""
    app_binary: str
    host_install: Optional[RuntimeInstall] = None
    container: Optional[ContainerInfo] = None
    num_nodes: int = 0
    num_procs: int = 0
    batch_script_path: Optional[Path] = None
    output_path: Optional[Path] = None
    error_path: Optional[Path] = None
    # mpirun arguments, everything after the mpirun binary itself
    args: List[str] = field(default_factory=list)
    state: JobState = JobState.CREATED

    @property
    def launcher_path(self) -> Path:
        if self.host_install is None:
            raise ConfigurationError("undefined host configuration")
        return Path(self.host_install.bin_dir) / "mpirun"

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)

    def transition(self, new_state: JobState) -> None:
        """Move to ``new_state``; staying in the current state is a no-op.

        Raises:
            JobStateError: If the transition is not allowed
        """
        if new_state == self.state:
            return
        if new_state not in _TRANSITIONS[self.state]:
            raise JobStateError(f"invalid job transition {self.state.value} -> {new_state.value}")
        logger.debug("Job %s: %s -> %s", self.app_binary, self.state.value, new_state.value)
        self.state = new_state


@dataclass
class LaunchDescriptor:
    """Command to execute to start (or submit) a job."""
    command: str
    args: List[str] = field(default_factory=list)
    # When set, the command output goes to these files instead of being captured
    stdout_path: Optional[Path] = None
    stderr_path: Optional[Path] = None

    @property
    def argv(self) -> List[str]:
        return [self.command] + list(self.args)


def _read_or_empty(path: Optional[Path]) -> str:
    # Absence of the file is a normal state before the job completes
    if path is None:
        return ""
    try:
        return Path(path).read_text()
    except OSError:
        return ""


class JobManager(ABC):
    """Abstract base class for job managers.

    Subclasses set ``id`` and implement detection and submission. Output
    collection and cleanup work on the job's files and are shared.
    """

    id: str = ""
    # True for managers that hand the job to an external batch scheduler
    is_scheduler: bool = False

    def __init__(self, system_config: SystemConfig):
        self.system_config = system_config

    @abstractmethod
    def detect(self) -> bool:
        """Check whether this job manager can be used on the host.

        Must be free of side effects so it can be called repeatedly.
        """
        pass

    def get_config(self) -> bool:
        """Return the persisted "enabled" flag of this job manager."""
        return True

    def set_config(self) -> None:
        """Persist the "enabled" flag of this job manager."""
        pass

    @abstractmethod
    def submit(self, job: Job, system_config: Optional[SystemConfig] = None) -> LaunchDescriptor:
        """Prepare ``job`` and return the command that starts it.

        Raises:
            ConfigurationError: If the job is incomplete
            SchedulerError: If the scheduler cannot be used
        """
        pass

    def get_output(self, job: Job) -> str:
        return _read_or_empty(job.output_path)

    def get_error(self, job: Job) -> str:
        return _read_or_empty(job.error_path)

    def cleanup(self, job: Job) -> None:
        """Remove the job's temporary files.

        Raises:
            OSError: If an existing file cannot be removed
        """
        for path in (job.batch_script_path, job.output_path, job.error_path):
            if path is not None and Path(path).exists():
                Path(path).unlink()
                logger.debug("Removed %s", path)

    @staticmethod
    def check_job(job: Optional[Job]) -> None:
        """Sanity checks shared by all job managers."""
        if job is None:
            raise ConfigurationError("undefined job")
        if job.host_install is None:
            raise ConfigurationError("undefined host configuration")
        if str(job.host_install.install_dir) in ("", "."):
            raise ConfigurationError("undefined host installation directory")
        if not job.app_binary:
            raise ConfigurationError("application binary is undefined")
