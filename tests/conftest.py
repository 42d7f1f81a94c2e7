import os as _os
import sys

import pytest

# Ensure project root is importable when the package is not installed.
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from dnsprov.docker_ops import DockerCommandError  # noqa: E402
from dnsprov.resolver import TxtLookupError, TxtNotFound  # noqa: E402


class FakeTxt:
    """In-memory TXT data. Names missing from ``records`` are NXDOMAIN."""

    def __init__(self, records=None, errors=()):
        self.records = dict(records or {})
        self.errors = set(errors)
        self.queries = []

    def __call__(self, name):
        self.queries.append(name)
        if name in self.errors:
            raise TxtLookupError(f"{name}: Timeout")
        if name not in self.records:
            raise TxtNotFound(f"{name}: NXDOMAIN")
        return list(self.records[name])


class FakeDocker:
    """Records runtime actions; ``containers`` maps name -> label value (None if unlabelled)."""

    def __init__(self, containers=None, fail=()):
        self.containers = dict(containers or {})
        self.fail = set(fail)
        self.calls = []
        self.list_error = False

    def _maybe_fail(self, op, name):
        if (op, name) in self.fail:
            raise DockerCommandError(["docker", op, name], 1, f"{op} failed")

    def list_managed(self):
        if self.list_error:
            raise DockerCommandError(["docker", "ps"], 1, "daemon down")
        return {n for n, label in self.containers.items() if label is not None}

    def exists(self, name):
        return name in self.containers

    def applied_fingerprint(self, name):
        return self.containers.get(name)

    def run(self, name, fingerprint, args):
        self.calls.append(("run", name, fingerprint, list(args)))
        self._maybe_fail("run", name)
        if name in self.containers:
            raise DockerCommandError(["docker", "run"], 125, "name already in use")
        self.containers[name] = fingerprint

    def kill(self, name):
        self.calls.append(("kill", name))
        self._maybe_fail("kill", name)

    def remove(self, name):
        self.calls.append(("rm", name))
        self._maybe_fail("rm", name)
        self.containers.pop(name, None)

    def stop_and_remove(self, name):
        try:
            self.kill(name)
        except DockerCommandError:
            pass
        self.remove(name)

    def ops(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def make_txt():
    return FakeTxt


@pytest.fixture
def make_docker():
    return FakeDocker
