"""
Configuration settings for mpilaunch.
"""
from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Tool configuration loaded from environment variables (MPILAUNCH_*)."""

    # Root of every install, container and config file managed by the tool
    base_dir: Path = Path.home() / ".mpilaunch"

    # Release catalogs (<implementation>.conf, version=url per line)
    etc_dir: Optional[Path] = None

    # Job scratch area (batch scripts, job output)
    scratch_dir: Optional[Path] = None

    # Where the per-session hand-off files live
    handoff_dir: Path = Path("/tmp")

    # Overrides the session identifier derived from the process tree
    session_id: Optional[int] = None

    # Container runtime used to inspect and execute images
    runtime_binary: str = "singularity"

    numeric_version_compare: bool = False

    num_nodes: int = 0
    num_procs: int = 2

    # make -j value used when building runtimes
    build_jobs: int = 4

    # Keep batch scripts and job output after a successful run
    keep_artifacts: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MPILAUNCH_",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def fill_derived_dirs(self):
        if self.etc_dir is None:
            self.etc_dir = self.base_dir / "etc"
        if self.scratch_dir is None:
            self.scratch_dir = self.base_dir / "scratch"
        return self

    @property
    def config_file(self) -> Path:
        return self.base_dir / "mpilaunch.yaml"

    @property
    def log_file(self) -> Path:
        return self.base_dir / "mpilaunch.log"
