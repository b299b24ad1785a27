"""
Installation of MPI implementations and of the container runtime on the host.

Sources are downloaded from the URL listed for the requested version in the
release catalog of the implementation (``<etc_dir>/<id>.conf``), unpacked in
a scratch directory, then configured, built and installed under the base
directory as ``<prefix><id>-<version>``.
"""

import contextlib
import fcntl
import logging
import shutil
import subprocess
import tarfile
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import requests

from mpilaunch.core.system import SystemConfig
from mpilaunch.errors import InstallError, NotFoundError
from mpilaunch.installs.models import Namespace, RuntimeInstall
from mpilaunch.utils.helpers import get_value, load_key_value_config

logger = logging.getLogger(__name__)

MPI_IMPLEMENTATIONS = ("openmpi", "mpich")
RUNTIME_IMPLEMENTATIONS = ("singularity",)

DOWNLOAD_TIMEOUT = 60
DOWNLOAD_CHUNK_SIZE = 1 << 20


def namespace_for(implementation: str) -> Namespace:
    if implementation in RUNTIME_IMPLEMENTATIONS:
        return Namespace.RUNTIME
    return Namespace.MPI


class Installer:
    """Installs and removes runtimes under the base directory."""

    def __init__(self, system_config: SystemConfig, session: Optional[requests.Session] = None):
        self.system_config = system_config
        self.settings = system_config.settings
        self.session = session or requests.Session()

    def catalog_path(self, implementation: str) -> Path:
        return Path(self.settings.etc_dir) / f"{implementation}.conf"

    def load_catalog(self, implementation: str) -> Dict[str, str]:
        """Return the version -> URL mapping of ``implementation``.

        Raises:
            NotFoundError: If there is no catalog for the implementation
        """
        path = self.catalog_path(implementation)
        if not path.exists():
            raise NotFoundError(f"no release catalog for {implementation} ({path})")
        return load_key_value_config(path)

    def available_versions(self, implementation: str) -> List[str]:
        return list(self.load_catalog(implementation).keys())

    def target(self, implementation: str, version: str) -> RuntimeInstall:
        return RuntimeInstall.in_base_dir(
            self.settings.base_dir, namespace_for(implementation), implementation, version
        )

    def install(self, implementation: str, version: str) -> RuntimeInstall:
        """Download, build and install ``implementation`` ``version``.

        Concurrent installs of the same version are serialised by a lock
        file; the second one finds the install in place and returns.

        Raises:
            InstallError: If any step fails
        """
        install = self.target(implementation, version)
        try:
            url = get_value(self.load_catalog(implementation), version)
        except (NotFoundError, OSError) as e:
            raise InstallError(f"cannot look up {implementation} {version}: {e}") from e
        if not url:
            raise InstallError(f"{implementation} {version} is not listed in {self.catalog_path(implementation)}")

        with self._install_lock(implementation, version):
            if install.install_dir.exists():
                logger.info("%s is already installed in %s", install.label, install.install_dir)
                return install

            scratch_root = Path(self.settings.scratch_dir)
            scratch_root.mkdir(parents=True, exist_ok=True)
            scratch_dir = Path(tempfile.mkdtemp(prefix=f"{implementation}-{version}_", dir=scratch_root))
            try:
                tarball = self.download(url, scratch_dir)
                src_dir = self.unpack(tarball, scratch_dir / "src")
                self.build(implementation, src_dir, install.install_dir)
            except InstallError:
                # A partial install would be picked up by later resolutions
                shutil.rmtree(install.install_dir, ignore_errors=True)
                raise
            finally:
                shutil.rmtree(scratch_dir, ignore_errors=True)

        logger.info("%s installed in %s", install.label, install.install_dir)
        return install

    def uninstall(self, implementation: str, version: str) -> RuntimeInstall:
        """Remove an install.

        Raises:
            NotFoundError: If the version is not installed
        """
        install = self.target(implementation, version)
        if not install.install_dir.exists():
            raise NotFoundError(f"{install.label} is not installed")
        with self._install_lock(implementation, version):
            shutil.rmtree(install.install_dir)
        logger.info("%s removed", install.label)
        return install

    def download(self, url: str, dest_dir: Path) -> Path:
        dest = Path(dest_dir) / url.rstrip("/").split("/")[-1].split("?")[0]
        logger.info("Downloading %s", url)
        try:
            with self.session.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT) as response:
                response.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.exceptions.RequestException as e:
            raise InstallError(f"failed to download {url}: {e}") from e
        return dest

    def unpack(self, tarball: Path, dest_dir: Path) -> Path:
        """Extract ``tarball`` and return the top-level source directory."""
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        root = dest_dir.resolve()
        try:
            with tarfile.open(tarball) as tar:
                for member in tar.getmembers():
                    if not _is_within(root, root / member.name):
                        raise InstallError(f"{tarball} contains an unsafe path: {member.name}")
                    if member.issym():
                        link_target = root / Path(member.name).parent / member.linkname
                    elif member.islnk():
                        link_target = root / member.linkname
                    else:
                        continue
                    if not _is_within(root, link_target):
                        raise InstallError(
                            f"{tarball} contains a link leaving the archive: {member.name} -> {member.linkname}"
                        )
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(dest_dir, filter="data")
                else:
                    tar.extractall(dest_dir)
        except (tarfile.TarError, OSError) as e:
            raise InstallError(f"failed to unpack {tarball}: {e}") from e

        entries = [entry for entry in dest_dir.iterdir()]
        if len(entries) == 1 and entries[0].is_dir():
            return entries[0]
        return dest_dir

    def build_steps(self, implementation: str, prefix: Path) -> List[List[str]]:
        jobs = f"-j{self.settings.build_jobs}"
        if implementation in RUNTIME_IMPLEMENTATIONS:
            return [
                ["./mconfig", f"--prefix={prefix}"],
                ["make", "-C", "builddir", jobs],
                ["make", "-C", "builddir", "install"],
            ]
        return [
            ["./configure", f"--prefix={prefix}"],
            ["make", jobs, "install"],
        ]

    def build(self, implementation: str, src_dir: Path, prefix: Path) -> None:
        for step in self.build_steps(implementation, prefix):
            logger.info("Running %s in %s", " ".join(step), src_dir)
            try:
                res = subprocess.run(step, cwd=src_dir, capture_output=True, text=True, check=False)
            except OSError as e:
                raise InstallError(f"failed to run {' '.join(step)}: {e}") from e
            if res.returncode != 0:
                logger.debug("stdout of %s:\n%s", step[0], res.stdout)
                raise InstallError(f"{' '.join(step)} failed: {res.stderr.strip()[-2000:]}")

    @contextlib.contextmanager
    def _install_lock(self, implementation: str, version: str) -> Iterator[None]:
        base_dir = Path(self.settings.base_dir)
        base_dir.mkdir(parents=True, exist_ok=True)
        lock_path = base_dir / f".{implementation}-{version}.lock"
        fh = open(lock_path, "w")
        try:
            fcntl.flock(fh, fcntl.LOCK_EX)
            yield None
        finally:
            try:
                fcntl.flock(fh, fcntl.LOCK_UN)
            finally:
                fh.close()


def _is_within(root: Path, path: Path) -> bool:
    target = Path(path).resolve()
    return target == root or root in target.parents
