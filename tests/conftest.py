"""
Pytest configuration and shared fixtures.

Every fixture works inside pytest's tmp_path: base directory, scratch
directory and hand-off files never touch the real home directory or /tmp.
"""

import pytest

from mpilaunch.core.settings import Settings
from mpilaunch.core.system import SystemConfig
from mpilaunch.environment import EnvironmentActivator, StaticIdentity
from mpilaunch.installs.models import Namespace, RuntimeInstall, dir_name

SESSION_ID = 4242


@pytest.fixture
def settings(tmp_path):
    base_dir = tmp_path / "base"
    base_dir.mkdir()
    handoff_dir = tmp_path / "handoff"
    handoff_dir.mkdir()
    return Settings(
        _env_file=None,
        base_dir=base_dir,
        handoff_dir=handoff_dir,
        session_id=SESSION_ID,
    )


@pytest.fixture
def system_config(settings):
    return SystemConfig.load(settings)


@pytest.fixture
def make_install(settings):
    """Create an install directory (with bin/ and lib/) under the base directory."""
    def _make(implementation, version, namespace=Namespace.MPI):
        install_dir = settings.base_dir / dir_name(namespace, implementation, version)
        (install_dir / "bin").mkdir(parents=True)
        (install_dir / "lib").mkdir(parents=True)
        return RuntimeInstall.from_install_dir(install_dir, implementation, version)
    return _make


@pytest.fixture
def handoff_file(settings):
    """The hand-off file, created as the shell wrapper would."""
    path = settings.handoff_dir / f"mpilaunch_{SESSION_ID}"
    path.write_text("")
    return path


@pytest.fixture
def environ():
    return {
        "PATH": "/usr/local/bin:/usr/bin:/bin",
        "LD_LIBRARY_PATH": "/usr/local/lib",
    }


@pytest.fixture
def activator(settings, environ):
    return EnvironmentActivator(StaticIdentity(SESSION_ID), settings.handoff_dir, environ=environ)
