"""Registry for job managers.

Maps job manager ids to their implementation and selects, at launch time,
the first one that can be used on the host.
"""

import logging
from typing import Dict, List, Optional, Tuple, Type

from mpilaunch.core.system import SystemConfig
from .base import JobManager

logger = logging.getLogger(__name__)


class JobManagerRegistry:
    """Registry of job manager implementations.

    Managers are tried by increasing priority; the local job manager is
    registered last and always detects, so detection never comes back empty.
    """

    # id -> (priority, class)
    _managers: Dict[str, Tuple[int, Type[JobManager]]] = {}

    @classmethod
    def register(cls, manager_id: str, manager_class: Type[JobManager], priority: int = 100):
        """Register a job manager.

        Args:
            manager_id: Identifier, e.g. 'slurm'
            manager_class: JobManager subclass
            priority: Lower values are tried first
        """
        cls._managers[manager_id] = (priority, manager_class)

    @classmethod
    def unregister(cls, manager_id: str):
        cls._managers.pop(manager_id, None)

    @classmethod
    def get(cls, manager_id: str) -> Optional[Type[JobManager]]:
        entry = cls._managers.get(manager_id)
        return entry[1] if entry else None

    @classmethod
    def list_managers(cls) -> List[str]:
        """List registered ids in detection order."""
        return [mid for mid, _ in sorted(cls._managers.items(), key=lambda item: item[1][0])]

    @classmethod
    def create(cls, manager_id: str, system_config: SystemConfig) -> JobManager:
        """Instantiate a job manager by id.

        Raises:
            ValueError: If no manager is registered under ``manager_id``
        """
        manager_class = cls.get(manager_id)
        if manager_class is None:
            raise ValueError(
                f"No job manager registered as '{manager_id}'. "
                f"Available job managers: {cls.list_managers()}"
            )
        return manager_class(system_config)

    @classmethod
    def detect(cls, system_config: SystemConfig) -> JobManager:
        """Return the first job manager, in priority order, that detects.

        Raises:
            LookupError: If nothing detects (no local fallback registered)
        """
        for manager_id in cls.list_managers():
            manager = cls.create(manager_id, system_config)
            if manager.detect():
                logger.info("* %s detected", manager_id)
                return manager
            logger.info("* %s not detected", manager_id)
        raise LookupError("no usable job manager found")
