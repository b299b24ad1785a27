"""
mpirun argument vector for running a container with the host MPI.
"""

from typing import List

from mpilaunch.container.models import ContainerInfo, ExecutionModel
from mpilaunch.errors import ConfigurationError
from mpilaunch.installs.models import RuntimeInstall


def build_mpirun_args(host_install: RuntimeInstall, container: ContainerInfo, num_procs: int = 0,
                      runtime_binary: str = "singularity") -> List[str]:
    """Build the arguments passed to the host's mpirun.

    In bind mode the host install is mounted at the directory the image
    expects its MPI in; in integrated mode the image brings its own.

    Raises:
        ConfigurationError: If a bind-mode image does not declare its MPI directory
    """
    if host_install is None or container is None:
        raise ConfigurationError("host install and container are both required")

    args: List[str] = []
    if num_procs > 0:
        args += ["-np", str(num_procs)]

    args += [runtime_binary, "exec"]
    if container.model == ExecutionModel.BIND:
        if not container.mpi_dir:
            raise ConfigurationError(f"container {container.name} is in bind mode but has no MPI directory")
        args += ["--bind", f"{host_install.install_dir}:{container.mpi_dir}"]

    args += [str(container.image_path), container.app_exe]
    return args
