"""
Tests for the run-container pipeline with fake inspection, installation and execution.
"""

from unittest.mock import MagicMock

import pytest

from mpilaunch.container.models import ContainerInfo
from mpilaunch.core.orchestrator import LaunchOrchestrator
from mpilaunch.errors import (
    CompatibilityError,
    InstallError,
    LaunchFailedError,
    NotFoundError,
    SchedulerError,
)
from mpilaunch.installs import Namespace
from mpilaunch.launcher import ExecResult
from mpilaunch.managers import JobState, LocalJobManager, SlurmJobManager
from mpilaunch.managers.slurm import SLURM_ENABLED_KEY


class FakeRegistry:
    def __init__(self, manager):
        self.manager = manager

    def detect(self, system_config):
        return self.manager


class RecordingExecutor:
    """Stands in for the launcher, optionally writing the job's output files."""

    def __init__(self, returncode=0, stdout="hello from rank 0\n", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, launcher):
        self.calls.append(launcher)
        if launcher.stdout_path is not None:
            launcher.stdout_path.write_text(self.stdout)
            launcher.stderr_path.write_text(self.stderr)
            return ExecResult(self.returncode)
        return ExecResult(self.returncode, stdout=self.stdout, stderr=self.stderr)


@pytest.fixture
def image(settings):
    container_dir = settings.base_dir / "container_hello"
    container_dir.mkdir()
    path = container_dir / "hello.sif"
    path.write_bytes(b"SIF")
    return path


@pytest.fixture
def inspector(image):
    inspector = MagicMock()
    inspector.inspect.return_value = ContainerInfo(
        name="hello",
        image_path=image,
        model="bind",
        mpi_id="openmpi",
        mpi_version="4.0.1",
        mpi_dir="/opt/mpi",
        app_exe="/opt/app/hello",
    )
    return inspector


@pytest.fixture
def installer(make_install):
    installer = MagicMock()
    installer.install.side_effect = lambda impl, version: make_install(impl, version)
    return installer


def _orchestrator(system_config, activator, inspector, installer, manager, executor):
    return LaunchOrchestrator(
        system_config,
        activator,
        inspector=inspector,
        installer=installer,
        registry=FakeRegistry(manager),
        executor=executor,
    )


class TestLaunchOrchestrator:

    def test_missing_image(self, system_config, activator, handoff_file, inspector, installer):
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), RecordingExecutor())
        with pytest.raises(NotFoundError):
            orchestrator.run("nope")
        inspector.inspect.assert_not_called()

    def test_local_run_with_compatible_install(self, system_config, activator, handoff_file,
                                                inspector, installer, make_install, image, environ):
        host = make_install("openmpi", "4.1.2")
        executor = RecordingExecutor()
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), executor)

        result = orchestrator.run("hello", num_procs=4)

        assert result.passed
        assert result.stdout == "hello from rank 0\n"
        assert result.err is None
        installer.install.assert_not_called()

        launcher = executor.calls[0]
        assert launcher.command == str(host.bin_dir / "mpirun")
        assert launcher.args == [
            "-np", "4", "singularity", "exec",
            "--bind", f"{host.install_dir}:/opt/mpi",
            str(image), "/opt/app/hello",
        ]
        assert environ["PATH"].split(":")[0] == str(host.bin_dir)
        # Artifacts removed after success
        assert not (system_config.scratch_dir / "hello.out").exists()

    def test_installs_missing_mpi(self, system_config, activator, handoff_file, inspector, installer):
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), RecordingExecutor())

        result = orchestrator.run("hello")

        installer.install.assert_called_once_with("openmpi", "4.0.1")
        assert result.passed
        assert activator.loaded(Namespace.MPI) == "openmpi:4.0.1"

    def test_install_failure(self, system_config, activator, handoff_file, inspector, installer):
        installer.install.side_effect = InstallError("download failed")
        executor = RecordingExecutor()
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), executor)

        with pytest.raises(CompatibilityError):
            orchestrator.run("hello")
        assert executor.calls == []
        assert handoff_file.read_text() == ""

    def test_failed_local_run_keeps_activation(self, system_config, activator, handoff_file,
                                               inspector, installer, make_install):
        make_install("openmpi", "4.0.1")
        executor = RecordingExecutor(returncode=1, stdout="", stderr="segfault\n")
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), executor)

        result = orchestrator.run("hello")

        assert not result.passed
        assert isinstance(result.err, LaunchFailedError)
        assert result.stderr == "segfault\n"
        assert activator.loaded(Namespace.MPI) == "openmpi:4.0.1"
        assert "mpi_install_openmpi-4.0.1" in handoff_file.read_text()
        # Artifacts kept for inspection
        assert (system_config.scratch_dir / "hello.err").exists()

    def test_scheduler_run(self, system_config, activator, handoff_file, inspector, installer,
                           make_install, monkeypatch):
        make_install("openmpi", "4.0.1")
        monkeypatch.setattr("mpilaunch.managers.slurm.shutil.which", lambda name: "/usr/bin/sbatch")
        manager = SlurmJobManager(system_config)
        scratch = system_config.scratch_dir

        def fake_sbatch(launcher):
            (scratch / "hello.out").write_text("done\n")
            return ExecResult(0)

        orchestrator = _orchestrator(system_config, activator, inspector, installer, manager, fake_sbatch)
        result = orchestrator.run("hello", num_nodes=2)

        assert result.passed
        assert result.stdout == "done\n"
        assert system_config.store.get(SLURM_ENABLED_KEY) is True
        assert not (scratch / "hello.sh").exists()

    def test_scheduler_failure(self, system_config, activator, handoff_file, inspector, installer,
                               make_install, monkeypatch):
        make_install("openmpi", "4.0.1")
        monkeypatch.setattr("mpilaunch.managers.slurm.shutil.which", lambda name: "/usr/bin/sbatch")
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     SlurmJobManager(system_config), lambda launcher: ExecResult(1))

        result = orchestrator.run("hello")

        assert not result.passed
        assert isinstance(result.err, SchedulerError)
        assert (system_config.scratch_dir / "hello.sh").exists()

    def test_missing_launcher_binary(self, system_config, activator, handoff_file, inspector,
                                     installer, make_install):
        make_install("openmpi", "4.0.1")

        def missing(launcher):
            raise NotFoundError("mpirun not found")

        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), missing)
        with pytest.raises(NotFoundError):
            orchestrator.run("hello")

    def test_keep_artifacts(self, system_config, activator, handoff_file, inspector, installer,
                            make_install):
        make_install("openmpi", "4.0.1")
        system_config.settings.keep_artifacts = True
        orchestrator = _orchestrator(system_config, activator, inspector, installer,
                                     LocalJobManager(system_config), RecordingExecutor())

        assert orchestrator.run("hello").passed
        assert (system_config.scratch_dir / "hello.out").exists()

    def test_launch_state(self, system_config, activator, inspector, make_install):
        host = make_install("openmpi", "4.0.1")
        orchestrator = _orchestrator(system_config, activator, inspector, MagicMock(),
                                     LocalJobManager(system_config), RecordingExecutor())
        container = inspector.inspect.return_value
        job = orchestrator.create_job(container, host, num_procs=2)

        orchestrator.launch(job, LocalJobManager(system_config))
        assert job.state == JobState.COMPLETED
