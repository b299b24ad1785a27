"""
Tests for install discovery and compatibility resolution.
"""

from pathlib import Path

import pytest

from mpilaunch.errors import CompatibilityError, NotFoundError
from mpilaunch.installs import (
    CompatibilityQuery,
    Namespace,
    RuntimeInstall,
    discover_containers,
    discover_installs,
    find_compatible,
    resolve,
)


def _installs(*labels):
    result = []
    for label in labels:
        id, version = label.split(":")
        result.append(RuntimeInstall.from_install_dir(Path(f"/opt/mpi_install_{id}-{version}"), id, version))
    return result


class TestResolve:

    def test_exact_match(self):
        installs = _installs("openmpi:3.1.0", "openmpi:4.0.1")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.1"), installs)
        assert result.found
        assert (result.id, result.version) == ("openmpi", "4.0.1")

    def test_exact_match_wins_over_higher_versions(self):
        installs = _installs("openmpi:4.1.2", "openmpi:4.0.1", "openmpi:5.0.0")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.1"), installs)
        assert result.version == "4.0.1"

    def test_same_major_fallback_picks_highest(self):
        installs = _installs("openmpi:4.0.0", "openmpi:4.1.2")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.5"), installs)
        assert (result.id, result.version) == ("openmpi", "4.1.2")

    def test_lower_major_is_not_a_candidate(self):
        installs = _installs("openmpi:3.1.6")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.0"), installs)
        assert not result.found
        assert result.version is None

    def test_other_implementation_is_not_a_candidate(self):
        installs = _installs("mpich:3.3")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.0"), installs)
        assert not result.found

    def test_no_candidate_raises_compatibility_error(self):
        installs = _installs("mpich:3.3")
        with pytest.raises(CompatibilityError):
            find_compatible(CompatibilityQuery(id="openmpi", version="4.0.0"), installs)

    def test_string_ordering_is_the_default(self):
        # "4.9" > "4.10" as strings
        installs = _installs("openmpi:4.10.0", "openmpi:4.9.0")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.0"), installs)
        assert result.version == "4.9.0"

    def test_numeric_ordering(self):
        installs = _installs("openmpi:4.9.0", "openmpi:4.10.0")
        result = resolve(CompatibilityQuery(id="openmpi", version="4.0.0"), installs, numeric=True)
        assert result.version == "4.10.0"

    def test_resolution_is_deterministic(self):
        installs = _installs("openmpi:4.0.0", "openmpi:4.1.2", "mpich:3.3")
        query = CompatibilityQuery(id="openmpi", version="4.0.5")
        assert resolve(query, installs) == resolve(query, list(reversed(installs)))

    def test_find_compatible_returns_install(self):
        installs = _installs("openmpi:4.0.0", "openmpi:4.1.2")
        install = find_compatible(CompatibilityQuery(id="openmpi", version="4.0.5"), installs)
        assert install.install_dir == Path("/opt/mpi_install_openmpi-4.1.2")
        assert install.bin_dir == Path("/opt/mpi_install_openmpi-4.1.2/bin")


class TestDiscovery:

    def test_discover_installs_per_namespace(self, settings, make_install):
        make_install("openmpi", "4.0.1")
        make_install("mpich", "3.3.2")
        make_install("singularity", "3.5.3", namespace=Namespace.RUNTIME)
        (settings.base_dir / "container_hello").mkdir()

        mpis = discover_installs(settings.base_dir, Namespace.MPI)
        assert sorted(i.label for i in mpis) == ["mpich:3.3.2", "openmpi:4.0.1"]

        runtimes = discover_installs(settings.base_dir, Namespace.RUNTIME)
        assert [i.label for i in runtimes] == ["singularity:3.5.3"]

        assert discover_containers(settings.base_dir) == ["hello"]

    def test_version_keeps_its_dots_and_hyphens(self, settings, make_install):
        make_install("openmpi", "4.0.0-rc1")
        installs = discover_installs(settings.base_dir, Namespace.MPI)
        assert installs[0].id == "openmpi"
        assert installs[0].version == "4.0.0-rc1"

    def test_missing_base_dir(self, tmp_path):
        with pytest.raises(NotFoundError):
            discover_installs(tmp_path / "nope", Namespace.MPI)
