"""Builders: host installs of runtimes and the mpirun argument vector."""

from .installer import Installer, namespace_for
from .mpirun_args import build_mpirun_args

__all__ = ["Installer", "build_mpirun_args", "namespace_for"]
