"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest

from joyctl.provisioning.orchestrate import ServerCreateSettings
from joyctl.provisioning.types import Created, MachineState, ProvisionedResource


PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root, tmp_path_factory):
    """Return a callable that invokes the joyctl CLI as a subprocess.

    Joyent credentials are stripped from the environment and HOME points
    at an empty directory so no user config file is picked up.
    """
    home = tmp_path_factory.mktemp("home")
    env = {k: v for k, v in os.environ.items() if not k.startswith("JOYENT_")}
    env["HOME"] = str(home)

    def _run(*args):
        result = subprocess.run(
            [sys.executable, "-m", "joyctl.joyctl", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Provisioning fakes ──────────────────────────────────────────────


class FakeProvider:
    """Stands in for JoyentClient: a fixed create outcome and a queue of refresh snapshots."""

    def __init__(self, outcome, snapshots=()):
        self.outcome = outcome
        self.snapshots = list(snapshots)
        self.requests = []
        self.refreshed_ids = []

    async def create_machine(self, request):
        self.requests.append(request)
        return self.outcome

    async def get_machine(self, machine_id):
        self.refreshed_ids.append(machine_id)
        return self.snapshots.pop(0)


class RecordingBootstrap:
    def __init__(self, rc=0):
        self.rc = rc
        self.specs = []

    async def __call__(self, spec):
        self.specs.append(spec)
        return self.rc


def make_resource(state=MachineState.RUNNING, ips=(), machine_id="srv-123", name="web1"):
    return ProvisionedResource(
        id=machine_id,
        name=name,
        state=state,
        type="virtualmachine",
        dataset="img-1",
        ips=tuple(ips),
        raw_state=state.value,
    )


@pytest.fixture
def fast_settings():
    """ServerCreateSettings with all sleeps disabled."""
    return ServerCreateSettings(ready_interval=0, probe_backoff=0, probe_timeout=0.5)


@pytest.fixture
def make_provider():
    """Factory: FakeProvider whose create returns *outcome* (default: srv-123 provisioning) and whose refreshes return *snapshots*."""

    def _make(snapshots=(), outcome=None):
        if outcome is None:
            outcome = Created(make_resource(state=MachineState.PROVISIONING, ips=()))
        return FakeProvider(outcome, snapshots)

    return _make


@pytest.fixture
def make_machine():
    """Factory for ProvisionedResource snapshots (defaults: running srv-123 named web1)."""
    return make_resource


@pytest.fixture
def bootstrap():
    return RecordingBootstrap()
