"""
Exception hierarchy for mpilaunch.

Every failure raised by the core is an ``MpiLaunchError`` so the command
line front-end can report it and exit with a non-zero status. File read and
write failures are left as the built-in ``OSError``.
"""


class MpiLaunchError(Exception):
    """Base exception for install, activation and launch failures."""


class NotFoundError(MpiLaunchError):
    """Raised when a file, container image or install does not exist."""


class SessionLookupError(MpiLaunchError, LookupError):
    """Raised when the identity of the invoking shell session cannot be determined."""


class ConfigurationError(MpiLaunchError):
    """Raised on malformed descriptors or a missing hand-off file."""


class CompatibilityError(MpiLaunchError):
    """Raised when no compatible install exists and none could be installed."""


class SchedulerError(MpiLaunchError):
    """Raised when the batch scheduler is missing or a submission fails."""


class InstallError(MpiLaunchError):
    """Raised when a runtime cannot be downloaded, built or removed."""


class LaunchFailedError(MpiLaunchError):
    """Raised when a locally launched job exits with a non-zero status."""


class JobStateError(MpiLaunchError):
    """Raised on an invalid job state transition."""
