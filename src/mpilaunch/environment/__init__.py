"""Environment activation through the per-session hand-off file."""

from .activator import HANDOFF_FILE_PREFIX, EnvironmentActivator
from .session import ProcessTreeIdentity, SessionIdentityProvider, StaticIdentity

__all__ = [
    "HANDOFF_FILE_PREFIX",
    "EnvironmentActivator",
    "ProcessTreeIdentity",
    "SessionIdentityProvider",
    "StaticIdentity",
]
