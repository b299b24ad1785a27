"""
Runtime system configuration handed to the job managers and the installer.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config_store import ConfigStore
from .settings import Settings


@dataclass
class SystemConfig:
    """Settings plus the shared key-value store and the command line flags."""
    settings: Settings
    store: ConfigStore
    verbose: bool = False
    debug: bool = False

    @classmethod
    def load(cls, settings: Optional[Settings] = None, verbose: bool = False,
             debug: bool = False) -> "SystemConfig":
        settings = settings or Settings()
        # Debug mode always implies verbose output
        return cls(
            settings=settings,
            store=ConfigStore(settings.config_file),
            verbose=verbose or debug,
            debug=debug,
        )

    @property
    def base_dir(self) -> Path:
        return self.settings.base_dir

    @property
    def scratch_dir(self) -> Path:
        return self.settings.scratch_dir
