"""
Compatibility resolution between a requested runtime version and the
versions installed on the host.
"""

import logging
from typing import Callable, Iterable, Optional, Tuple

from mpilaunch.errors import CompatibilityError
from .models import CompatibilityQuery, CompatibilityResult, RuntimeInstall

logger = logging.getLogger(__name__)


def _numeric_key(version: str) -> Tuple[Tuple[int, object], ...]:
    """Component-wise key, numeric where possible: 4.10 sorts after 4.9."""
    key = []
    for part in version.split("."):
        # Numeric components sort before textual ones
        key.append((0, int(part)) if part.isdigit() else (1, part))
    return tuple(key)


def _major_as_int(version: str) -> Optional[int]:
    major = version.split(".")[0]
    return int(major) if major.isdigit() else None


def version_key(numeric: bool) -> Callable[[str], object]:
    """Ordering used to pick the highest version.

    Plain string ordering is the historical behavior and is kept as the
    default; it misorders multi-digit components ("4.10" < "4.9").
    """
    if numeric:
        return _numeric_key
    return str


def _select(query: CompatibilityQuery, installs: Iterable[RuntimeInstall],
            numeric: bool) -> Optional[RuntimeInstall]:
    installs = list(installs)
    for install in installs:
        if install.id == query.id and install.version == query.version:
            return install

    requested_major = _major_as_int(query.version)
    if requested_major is None:
        logger.warning("Cannot parse major version of %s, only exact matches are possible", query.version)
        return None

    key = version_key(numeric)
    best: Optional[RuntimeInstall] = None
    for install in installs:
        if install.id != query.id:
            continue
        major = _major_as_int(install.version)
        if major is None or major < requested_major:
            continue
        if best is None or key(best.version) < key(install.version):
            best = install

    if best is not None:
        logger.debug("No exact match for %s:%s, using %s", query.id, query.version, best.label)
    return best


def resolve(query: CompatibilityQuery, installs: Iterable[RuntimeInstall],
            numeric: bool = False) -> CompatibilityResult:
    """Find the install compatible with ``query``.

    An exact id/version match is returned immediately. Otherwise the highest
    version of the same implementation whose major component is at least the
    requested major is returned. When nothing qualifies the result has no
    version.
    """
    install = _select(query, installs, numeric)
    if install is None:
        return CompatibilityResult(id=query.id)
    return CompatibilityResult(id=query.id, version=install.version)


def find_compatible(query: CompatibilityQuery, installs: Iterable[RuntimeInstall],
                    numeric: bool = False) -> RuntimeInstall:
    """Like :func:`resolve` but returns the install itself.

    Raises:
        CompatibilityError: If no compatible install exists
    """
    install = _select(query, installs, numeric)
    if install is None:
        raise CompatibilityError(f"no compatible version of {query.id} {query.version} available")
    return install
