from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from mpilaunch.errors import ConfigurationError


class ConfigStore:
    """
    Small persistent key-value store shared by the job managers.
    Backed by a single YAML mapping, e.g. <base_dir>/mpilaunch.yaml:

        slurm_enabled: true
        slurm_partition: batch
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def as_dict(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid {self.path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.as_dict().get(key, default)

    def set(self, key: str, value: Any) -> Dict[str, Any]:
        cur = self.as_dict()
        cur[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(cur, default_flow_style=False), encoding="utf-8")
        return cur
