"""
LaunchOrchestrator runs a container with a compatible host MPI:
1. Locating the image and reading its metadata
2. Finding (or installing) a host MPI compatible with the image's MPI
3. Activating that MPI in the invoking shell's environment
4. Building the mpirun command and starting the job through the first
   job manager detected on the host (Slurm, else local execution)

The environment activation of step 3 is intentionally kept when a later
step fails, so the environment of a failed run can be inspected from the
same shell.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Type

from mpilaunch.builders.installer import Installer
from mpilaunch.builders.mpirun_args import build_mpirun_args
from mpilaunch.container.inspector import ContainerInspector
from mpilaunch.container.models import ContainerInfo, ExecutionModel
from mpilaunch.environment.activator import EnvironmentActivator
from mpilaunch.errors import (
    CompatibilityError,
    InstallError,
    LaunchFailedError,
    MpiLaunchError,
    NotFoundError,
    SchedulerError,
)
from mpilaunch.installs.discovery import discover_installs
from mpilaunch.installs.models import CONTAINER_INSTALL_PREFIX, CompatibilityQuery, Namespace, RuntimeInstall
from mpilaunch.installs.resolver import resolve
from mpilaunch.launcher import ExecResult, execute
from mpilaunch.managers import Job, JobManager, JobManagerRegistry, JobState, LaunchDescriptor
from .system import SystemConfig

logger = logging.getLogger(__name__)


@dataclass
class LaunchResult:
    passed: bool
    stdout: str = ""
    stderr: str = ""
    err: Optional[Exception] = None


class LaunchOrchestrator:
    """End-to-end "run container" pipeline, one job per invocation."""

    def __init__(self, system_config: SystemConfig, activator: EnvironmentActivator,
                 inspector: Optional[ContainerInspector] = None,
                 installer: Optional[Installer] = None,
                 registry: Type[JobManagerRegistry] = JobManagerRegistry,
                 executor: Callable[[LaunchDescriptor], ExecResult] = execute):
        self.system_config = system_config
        self.settings = system_config.settings
        self.activator = activator
        self.inspector = inspector or ContainerInspector(self.settings.runtime_binary)
        self.installer = installer or Installer(system_config)
        self.registry = registry
        self.executor = executor

    def image_path(self, container_name: str) -> Path:
        container_dir = Path(self.settings.base_dir) / f"{CONTAINER_INSTALL_PREFIX}{container_name}"
        return container_dir / f"{container_name}.sif"

    def run(self, container_name: str, num_nodes: Optional[int] = None,
            num_procs: Optional[int] = None) -> LaunchResult:
        """Run ``container_name`` and return the outcome of the job.

        Raises:
            NotFoundError: If the image does not exist
            CompatibilityError: If no compatible MPI can be found or installed
            ConfigurationError: On malformed metadata or a missing hand-off file
            SchedulerError: If the scheduler cannot be used
        """
        img_path = self.image_path(container_name)
        if not img_path.exists():
            raise NotFoundError(f"{img_path} does not exist")

        logger.info("Analyzing %s to figure out the correct configuration for execution...", img_path)
        container = self.inspector.inspect(img_path, name=container_name)
        logger.info("Container based on %s %s", container.mpi_id, container.mpi_version)

        host_mpi = self.find_host_mpi(container)
        logger.info("Container is in %s mode", container.model.value)
        if container.model == ExecutionModel.BIND:
            logger.info("Binding/mounting %s on host -> %s", host_mpi.label, container.mpi_dir)

        self.activator.load(Namespace.MPI, host_mpi)

        job = self.create_job(container, host_mpi, num_nodes, num_procs)
        job.args = build_mpirun_args(host_mpi, container, job.num_procs, self.settings.runtime_binary)

        manager = self.select_job_manager()
        return self.launch(job, manager)

    def find_host_mpi(self, container: ContainerInfo) -> RuntimeInstall:
        """Resolve the host MPI for ``container``, installing the exact version if needed."""
        query = CompatibilityQuery(id=container.mpi_id, version=container.mpi_version)
        numeric = self.settings.numeric_version_compare

        logger.info("Looking for available compatible version...")
        installs = discover_installs(self.settings.base_dir, Namespace.MPI)
        result = resolve(query, installs, numeric=numeric)
        if result.found:
            logger.info("%s %s was found on the host as a compatible version", result.id, result.version)
            return _pick(installs, result.id, result.version)

        logger.info("No compatible MPI found, installing %s %s...", query.id, query.version)
        try:
            self.installer.install(query.id, query.version)
        except InstallError as e:
            raise CompatibilityError(f"failed to install {query.id} {query.version}: {e}") from e

        installs = discover_installs(self.settings.base_dir, Namespace.MPI)
        result = resolve(query, installs, numeric=numeric)
        if not result.found or result.version != query.version:
            raise CompatibilityError(f"{query.id} {query.version} still unavailable after installation")
        return _pick(installs, result.id, result.version)

    def create_job(self, container: ContainerInfo, host_mpi: RuntimeInstall,
                   num_nodes: Optional[int] = None, num_procs: Optional[int] = None) -> Job:
        scratch_dir = Path(self.settings.scratch_dir)
        return Job(
            app_binary=container.app_exe,
            host_install=host_mpi,
            container=container,
            num_nodes=self.settings.num_nodes if num_nodes is None else num_nodes,
            num_procs=self.settings.num_procs if num_procs is None else num_procs,
            batch_script_path=scratch_dir / f"{container.name}.sh",
            output_path=scratch_dir / f"{container.name}.out",
            error_path=scratch_dir / f"{container.name}.err",
        )

    def select_job_manager(self) -> JobManager:
        manager = self.registry.detect(self.system_config)
        if manager.is_scheduler and not manager.get_config():
            manager.set_config()
        return manager

    def launch(self, job: Job, manager: JobManager) -> LaunchResult:
        """Submit ``job`` through ``manager``, wait for it and collect its output."""
        launcher = manager.submit(job, self.system_config)
        job.transition(JobState.SUBMITTED)
        try:
            exec_res = self.executor(launcher)
        except NotFoundError as e:
            job.transition(JobState.FAILED)
            if manager.is_scheduler:
                raise SchedulerError(str(e)) from e
            raise

        stdout = manager.get_output(job) or exec_res.stdout
        stderr = manager.get_error(job) or exec_res.stderr

        if exec_res.ok:
            job.transition(JobState.COMPLETED)
            if not (self.settings.keep_artifacts or self.system_config.debug):
                manager.cleanup(job)
            return LaunchResult(passed=True, stdout=stdout, stderr=stderr)

        job.transition(JobState.FAILED)
        err: MpiLaunchError
        if manager.is_scheduler:
            err = SchedulerError(f"{launcher.command} exited with code {exec_res.returncode}")
        else:
            err = LaunchFailedError(f"{launcher.command} exited with code {exec_res.returncode}")
        logger.debug("Job artifacts kept in %s", Path(self.settings.scratch_dir))
        return LaunchResult(passed=False, stdout=stdout, stderr=stderr, err=err)


def _pick(installs, id: str, version: str) -> RuntimeInstall:
    for install in installs:
        if install.id == id and install.version == version:
            return install
    raise CompatibilityError(f"{id}:{version} is not installed")
