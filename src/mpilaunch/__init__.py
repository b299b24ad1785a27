"""
mpilaunch: run MPI containers with a compatible host MPI.

Manages co-installed versions of MPI implementations and of the container
runtime, activates them in the invoking shell through a hand-off file, and
starts containerized jobs locally or through Slurm.
"""

from .errors import (
    CompatibilityError,
    ConfigurationError,
    InstallError,
    JobStateError,
    LaunchFailedError,
    MpiLaunchError,
    NotFoundError,
    SchedulerError,
    SessionLookupError,
)

__version__ = "0.1.0"

__all__ = [
    "CompatibilityError",
    "ConfigurationError",
    "InstallError",
    "JobStateError",
    "LaunchFailedError",
    "MpiLaunchError",
    "NotFoundError",
    "SchedulerError",
    "SessionLookupError",
]
