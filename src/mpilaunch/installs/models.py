"""
Install models with Pydantic schema validation.

Describes the runtimes installed under the base directory and the
compatibility queries made against them.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Directory name prefixes under the base directory
MPI_INSTALL_PREFIX = "mpi_install_"
RUNTIME_INSTALL_PREFIX = "runtime_install_"
CONTAINER_INSTALL_PREFIX = "container_"


class Namespace(str, Enum):
    """Categories of exchangeable installs, at most one of each is loaded."""
    MPI = "mpi"
    RUNTIME = "runtime"

    @property
    def prefix(self) -> str:
        if self is Namespace.MPI:
            return MPI_INSTALL_PREFIX
        return RUNTIME_INSTALL_PREFIX


class RuntimeInstall(BaseModel):
    """A runtime version installed on the host."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Implementation name (openmpi, mpich, singularity)")
    version: str = Field(..., min_length=1, description="Dotted version string")
    install_dir: Path
    bin_dir: Path
    lib_dir: Path

    @classmethod
    def from_install_dir(cls, install_dir: Path, id: str, version: str) -> "RuntimeInstall":
        install_dir = Path(install_dir)
        return cls(
            id=id,
            version=version,
            install_dir=install_dir,
            bin_dir=install_dir / "bin",
            lib_dir=install_dir / "lib",
        )

    @classmethod
    def in_base_dir(cls, base_dir: Path, namespace: Namespace, id: str, version: str) -> "RuntimeInstall":
        """Build the descriptor of ``id``/``version`` at its conventional location."""
        return cls.from_install_dir(Path(base_dir) / dir_name(namespace, id, version), id, version)

    @property
    def label(self) -> str:
        return f"{self.id}:{self.version}"

    @property
    def major(self) -> str:
        return self.version.split(".")[0]


class CompatibilityQuery(BaseModel):
    id: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)

    @field_validator("version")
    @classmethod
    def strip_version(cls, v: str) -> str:
        return v.strip()


class CompatibilityResult(BaseModel):
    """Outcome of a resolution, ``version`` is None when nothing matched."""
    id: str
    version: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.version is not None


def dir_name(namespace: Namespace, id: str, version: str) -> str:
    """Install directory name: <prefix><id>-<version>."""
    return f"{namespace.prefix}{id}-{version}"
