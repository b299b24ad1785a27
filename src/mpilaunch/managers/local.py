"""
Local job manager: runs mpirun directly on the current host.
"""

import logging
from pathlib import Path
from typing import Optional

from mpilaunch.core.system import SystemConfig
from .base import Job, JobManager, LaunchDescriptor

logger = logging.getLogger(__name__)

LOCAL_ID = "local"


class LocalJobManager(JobManager):
    """Fallback of last resort, always available."""

    id = LOCAL_ID

    def detect(self) -> bool:
        return True

    def submit(self, job: Job, system_config: Optional[SystemConfig] = None) -> LaunchDescriptor:
        self.check_job(job)

        for path in (job.output_path, job.error_path):
            if path is not None:
                Path(path).parent.mkdir(parents=True, exist_ok=True)

        launcher = LaunchDescriptor(
            command=str(job.launcher_path),
            args=list(job.args),
            stdout_path=job.output_path,
            stderr_path=job.error_path,
        )
        logger.debug("Local launch: %s", " ".join(launcher.argv))
        return launcher
