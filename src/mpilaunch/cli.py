# mpilaunch/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from mpilaunch.builders.installer import Installer, MPI_IMPLEMENTATIONS, RUNTIME_IMPLEMENTATIONS, namespace_for
from mpilaunch.core.orchestrator import LaunchOrchestrator
from mpilaunch.core.settings import Settings
from mpilaunch.core.system import SystemConfig
from mpilaunch.environment import EnvironmentActivator, ProcessTreeIdentity, StaticIdentity
from mpilaunch.errors import ConfigurationError, MpiLaunchError, NotFoundError
from mpilaunch.installs import Namespace, RuntimeInstall, discover_containers, discover_installs
from mpilaunch.logging_setup import setup_logging
from mpilaunch.utils.helpers import parse_descriptor

logger = logging.getLogger(__name__)

_EXIT_OK = 0
_EXIT_ERROR = 1

_UNLOAD_TARGETS = {
    "mpi": Namespace.MPI,
    "runtime": Namespace.RUNTIME,
    "singularity": Namespace.RUNTIME,
}


class Context:
    """Objects shared by the command handlers of one invocation."""

    def __init__(self, system_config: SystemConfig):
        self.system_config = system_config
        self.settings = system_config.settings
        if self.settings.session_id is not None:
            identity = StaticIdentity(self.settings.session_id)
        else:
            identity = ProcessTreeIdentity()
        self.activator = EnvironmentActivator(identity, self.settings.handoff_dir)
        self.installer = Installer(system_config)

    def orchestrator(self) -> LaunchOrchestrator:
        return LaunchOrchestrator(self.system_config, self.activator, installer=self.installer)


def _installed(ctx: Context, namespace: Namespace, implementation: str, version: str) -> RuntimeInstall:
    install = RuntimeInstall.in_base_dir(ctx.settings.base_dir, namespace, implementation, version)
    if not install.install_dir.exists():
        raise NotFoundError(f"{install.label} is not installed, run 'mpilaunch list' to see the available installs")
    return install


def _print_section(title: str, entries, empty: str) -> None:
    if entries:
        print(f"{title}:")
        for entry in entries:
            print(f"\t{entry}")
        print()
    else:
        print(f"{empty}\n")


def cmd_list(args, ctx: Context) -> int:
    base_dir = ctx.settings.base_dir
    loaded_runtime = ctx.activator.loaded(Namespace.RUNTIME)
    loaded_mpi = ctx.activator.loaded(Namespace.MPI)

    runtimes = [
        i.label + (" (L)" if i.label == loaded_runtime else "")
        for i in discover_installs(base_dir, Namespace.RUNTIME)
    ]
    mpis = [
        i.label + (" (L)" if i.label == loaded_mpi else "")
        for i in discover_installs(base_dir, Namespace.MPI)
    ]
    _print_section("Available container runtime installation(s) on the host", runtimes,
                   "No container runtime available on the host")
    _print_section("Available MPI installation(s) on the host", mpis, "No MPI available on the host")
    _print_section("Available container(s)", discover_containers(base_dir), "No container available")
    return _EXIT_OK


def cmd_load(args, ctx: Context) -> int:
    implementation, version = parse_descriptor(args.target)
    namespace = namespace_for(implementation)
    install = _installed(ctx, namespace, implementation, version)
    ctx.activator.load(namespace, install)
    return _EXIT_OK


def cmd_unload(args, ctx: Context) -> int:
    namespace = _UNLOAD_TARGETS.get(args.target)
    if namespace is None:
        raise ConfigurationError(f"unload only accepts the following arguments: {', '.join(_UNLOAD_TARGETS)}")
    ctx.activator.unload(namespace)
    return _EXIT_OK


def cmd_install(args, ctx: Context) -> int:
    implementation, version = parse_descriptor(args.target)
    install = ctx.installer.install(implementation, version)
    print(f"{install.label} installed in {install.install_dir}")
    return _EXIT_OK


def cmd_uninstall(args, ctx: Context) -> int:
    implementation, version = parse_descriptor(args.target)
    install = ctx.installer.uninstall(implementation, version)
    print(f"{install.label} uninstalled")
    return _EXIT_OK


def cmd_run(args, ctx: Context) -> int:
    result = ctx.orchestrator().run(args.container, num_nodes=args.nodes, num_procs=args.procs)
    if not result.passed:
        raise MpiLaunchError(
            f"failed to run the container: {result.err} (stdout: {result.stdout}; stderr: {result.stderr})"
        )
    print(f"Execution successful!\n\tStdout: {result.stdout}\n\tStderr: {result.stderr}")
    return _EXIT_OK


def cmd_avail(args, ctx: Context) -> int:
    for implementation in RUNTIME_IMPLEMENTATIONS + MPI_IMPLEMENTATIONS:
        print(f"The following versions of {implementation} can be installed:")
        for version in ctx.installer.available_versions(implementation):
            print(f"\t{implementation}:{version}")
    return _EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("mpilaunch")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose mode")
    p.add_argument("-d", "--debug", action="store_true", help="Enable debug mode")
    sp = p.add_subparsers(dest="cmd")

    s_list = sp.add_parser("list", help="List the runtimes and containers installed on the host")
    s_list.set_defaults(func=cmd_list, action="list installs")

    s_load = sp.add_parser("load", help="Load an installed MPI or container runtime, e.g. openmpi:4.0.2")
    s_load.add_argument("target")
    s_load.set_defaults(func=cmd_load, action="load")

    s_unload = sp.add_parser("unload", help="Unload the current MPI or container runtime")
    s_unload.add_argument("target", help="mpi or runtime")
    s_unload.set_defaults(func=cmd_unload, action="unload")

    s_install = sp.add_parser("install", help="Install a runtime on the host, e.g. openmpi:4.0.2")
    s_install.add_argument("target")
    s_install.set_defaults(func=cmd_install, action="install")

    s_uninstall = sp.add_parser("uninstall", help="Remove a runtime from the host, e.g. openmpi:4.0.2")
    s_uninstall.add_argument("target")
    s_uninstall.set_defaults(func=cmd_uninstall, action="uninstall")

    s_run = sp.add_parser("run", help="Run a container")
    s_run.add_argument("container")
    s_run.add_argument("--nodes", type=int, default=None, help="Number of nodes (scheduler only)")
    s_run.add_argument("--procs", type=int, default=None, help="Number of MPI processes")
    s_run.set_defaults(func=cmd_run, action="run container")

    s_avail = sp.add_parser("avail", help="List the versions that can be installed on the host")
    s_avail.set_defaults(func=cmd_avail, action="list installable software")

    return p


def main(argv=None, settings: Optional[Settings] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        system_config = SystemConfig.load(settings, verbose=args.verbose, debug=args.debug)
        setup_logging(system_config.verbose, system_config.debug, system_config.settings.log_file)
        ctx = Context(system_config)
        return args.func(args, ctx)
    except (MpiLaunchError, OSError, ValidationError) as e:
        logger.debug("%s failed", args.cmd, exc_info=True)
        print(f"impossible to {args.action}: {e}", file=sys.stderr)
        return _EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
