"""
Slurm job manager.

Translates a job into a batch script and submits it with ``sbatch -W`` so
the submission blocks until the job terminates.
"""

import logging
import shlex
import shutil
from pathlib import Path
from typing import Optional

from mpilaunch.core.system import SystemConfig
from mpilaunch.errors import ConfigurationError, SchedulerError
from .base import Job, JobManager, JobState, LaunchDescriptor

logger = logging.getLogger(__name__)

SLURM_ID = "slurm"
SBATCH_BIN = "sbatch"
SCRIPT_DIRECTIVE = "#SBATCH"

# Config store keys
SLURM_ENABLED_KEY = "slurm_enabled"
SLURM_PARTITION_KEY = "slurm_partition"


class SlurmJobManager(JobManager):
    """Submits jobs through Slurm's sbatch."""

    id = SLURM_ID
    is_scheduler = True

    def detect(self) -> bool:
        return shutil.which(SBATCH_BIN) is not None

    def get_config(self) -> bool:
        return bool(self.system_config.store.get(SLURM_ENABLED_KEY, False))

    def set_config(self) -> None:
        logger.info("* Slurm detected, updating %s", self.system_config.store.path)
        self.system_config.store.set(SLURM_ENABLED_KEY, True)

    def submit(self, job: Job, system_config: Optional[SystemConfig] = None) -> LaunchDescriptor:
        system_config = system_config or self.system_config
        if shutil.which(SBATCH_BIN) is None:
            raise SchedulerError(f"{SBATCH_BIN} not found in PATH")

        self.generate_script(job, system_config)

        # -W: wait until the submitted job terminates
        return LaunchDescriptor(command=SBATCH_BIN, args=["-W", str(job.batch_script_path)])

    def generate_script(self, job: Job, system_config: SystemConfig) -> Path:
        """Write the batch script of ``job`` unless it already exists.

        Raises:
            ConfigurationError: If the job misses paths or host information
        """
        self.check_job(job)
        for attr in ("batch_script_path", "output_path", "error_path"):
            if getattr(job, attr) is None:
                raise ConfigurationError(f"undefined {attr.replace('_', ' ')}")

        script_path = Path(job.batch_script_path)
        script_text = self.render_script(job, system_config.store.get(SLURM_PARTITION_KEY))

        script_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(script_path, "x") as f:
                f.write(script_text)
        except FileExistsError:
            logger.info("* Script %s already exists, skipping", script_path)
        else:
            logger.debug("Wrote batch script %s", script_path)

        if job.state == JobState.CREATED:
            job.transition(JobState.SCRIPT_GENERATED)
        return script_path

    @staticmethod
    def render_script(job: Job, partition: Optional[str] = None) -> str:
        host = job.host_install
        lines = ["#!/bin/bash", "#"]
        if partition:
            lines.append(f"{SCRIPT_DIRECTIVE} --partition={partition}")
        if job.num_nodes > 0:
            lines.append(f"{SCRIPT_DIRECTIVE} --nodes={job.num_nodes}")
        if job.num_procs > 0:
            lines.append(f"{SCRIPT_DIRECTIVE} --ntasks={job.num_procs}")
        lines.append(f"{SCRIPT_DIRECTIVE} --error={job.error_path}")
        lines.append(f"{SCRIPT_DIRECTIVE} --output={job.output_path}")
        lines.append("")
        lines.append(f"export PATH={host.bin_dir}:$PATH")
        lines.append(f"export LD_LIBRARY_PATH={host.lib_dir}:$LD_LIBRARY_PATH")
        lines.append("")
        lines.append(shlex.join([str(job.launcher_path)] + list(job.args)))
        return "\n".join(lines) + "\n"
