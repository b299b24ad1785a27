"""Job managers for starting MPI jobs.

Each job manager knows how to start a job on one kind of system. At launch
time the registry tries them in priority order and uses the first one that
is detected on the host.

Adding a job manager for another scheduler:
1. Subclass JobManager and implement detect() and submit()
2. Register it with JobManagerRegistry.register('<id>', Class, priority)
   using a priority lower than the local job manager's
"""

from .base import Job, JobManager, JobState, LaunchDescriptor
from .local import LOCAL_ID, LocalJobManager
from .registry import JobManagerRegistry
from .slurm import SLURM_ID, SlurmJobManager

JobManagerRegistry.register(SLURM_ID, SlurmJobManager, priority=10)

# Always detected, must stay last
JobManagerRegistry.register(LOCAL_ID, LocalJobManager, priority=1000)

__all__ = [
    'Job',
    'JobManager',
    'JobState',
    'LaunchDescriptor',
    'JobManagerRegistry',
    'LocalJobManager',
    'SlurmJobManager',
    'LOCAL_ID',
    'SLURM_ID',
]
