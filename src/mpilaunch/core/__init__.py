"""Core modules: settings, the shared config store and the launch pipeline."""

from .config_store import ConfigStore
from .settings import Settings
from .system import SystemConfig

__all__ = ['ConfigStore', 'Settings', 'SystemConfig']
