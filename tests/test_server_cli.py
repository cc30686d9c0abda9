"""CLI tests for 'server create' / 'server delete': argument handling and dry runs."""

import argparse
import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from joyctl.commands.server.create import _handle_create, parse_run_list, register_create_action, settings_from_args
from joyctl.provisioning.bootstrap import run_bootstrap


def _parse_create(*argv):
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(dest="action", required=True)
    register_create_action(subparsers)
    return parser.parse_args(["create", *argv])


# ── Argument handling ─────────────────────────────────────────────


def test_parse_run_list_splits_on_commas_and_whitespace():
    assert parse_run_list("role[web], recipe[ntp]  role[db]") == ("role[web]", "recipe[ntp]", "role[db]")
    assert parse_run_list("") == ()
    assert parse_run_list(None) == ()


def test_settings_from_args_defaults():
    settings = settings_from_args(_parse_create("--image", "img-1", "--flavor", "g4-highcpu-1"))

    assert settings.ssh_user == "root"
    assert settings.distro == "chef-full"
    assert settings.host_key_verify is True
    assert settings.do_not_bootstrap is False
    assert settings.probe_timeout == 5.0
    assert settings.probe_backoff == 2.0
    assert settings.probe_max_attempts is None
    assert settings.retry_permission_denied is False
    assert settings.run_list == ()


def test_settings_from_args_overrides():
    args = _parse_create(
        "-I", "img-1", "-f", "g4-highcpu-1",
        "-r", "role[web],recipe[ntp]",
        "-x", "admin",
        "-i", "~/.ssh/joyent",
        "-N", "web1.example",
        "-d", "ubuntu10.04-gems",
        "-E", "staging",
        "--prerelease",
        "--do-not-host-key-verify",
        "--do-not-bootstrap",
        "--probe-max-attempts", "10",
        "--ready-timeout", "300",
    )
    settings = settings_from_args(args)

    assert settings.run_list == ("role[web]", "recipe[ntp]")
    assert settings.ssh_user == "admin"
    assert settings.identity_file == "~/.ssh/joyent"
    assert settings.node_name == "web1.example"
    assert settings.distro == "ubuntu10.04-gems"
    assert settings.environment == "staging"
    assert settings.prerelease is True
    assert settings.host_key_verify is False
    assert settings.do_not_bootstrap is True
    assert settings.probe_max_attempts == 10
    assert settings.ready_timeout == 300.0


# ── Dry-run end-to-end ────────────────────────────────────────────


def test_server_create_dry_run(run_cli):
    rc, stdout, _ = run_cli(
        "server", "create",
        "--image", "img-1",
        "--flavor", "g4-highcpu-1",
        "--name", "web1",
        "--dry-run",
    )
    assert rc == 0
    assert "[dry-run] POST" in stdout
    assert "/my/machines" in stdout
    assert '"package": "g4-highcpu-1"' in stdout
    assert '"image": "img-1"' in stdout
    assert '"name": "web1"' in stdout
    assert "Would wait for machine" in stdout


def test_server_delete_dry_run(run_cli):
    rc, stdout, _ = run_cli("server", "delete", "--id", "srv-123", "--dry-run")
    assert rc == 0
    assert "[dry-run] DELETE" in stdout
    assert "/my/machines/srv-123" in stdout


def test_server_create_requires_credentials(run_cli):
    rc, stdout, _ = run_cli("server", "create", "--image", "img-1", "--flavor", "g4-highcpu-1")
    assert rc == 1
    assert "credentials required" in stdout


def test_server_create_empty_image_rejected(run_cli):
    rc, stdout, _ = run_cli("server", "create", "--image", "", "--flavor", "g4-highcpu-1", "--dry-run")
    assert rc == 1
    assert "Image ID is required" in stdout


# ── Argparse validation ────────────────────────────────────────────


def test_server_create_missing_image(run_cli):
    rc, _, stderr = run_cli("server", "create", "--flavor", "g4-highcpu-1")
    assert rc != 0
    assert "--image" in stderr


def test_server_create_missing_flavor(run_cli):
    rc, _, stderr = run_cli("server", "create", "--image", "img-1")
    assert rc != 0
    assert "--flavor" in stderr


# ── CLI help ───────────────────────────────────────────────────────


def test_top_level_help(run_cli):
    rc, stdout, _ = run_cli("--help")
    assert rc == 0
    assert "server" in stdout
    assert "flavor" in stdout


def test_server_create_help(run_cli):
    rc, stdout, _ = run_cli("server", "create", "--help")
    assert rc == 0
    for flag in (
        "--name", "--flavor", "--image", "--run-list", "--ssh-user", "--identity-file", "--node-name",
        "--prerelease", "--distro", "--do-not-host-key-verify", "--do-not-bootstrap", "--dry-run",
    ):
        assert flag in stdout


# ── Attempt limit and bootstrap timeout ──────────────────────────


@pytest.mark.parametrize("value", ["0", "-2"])
def test_max_attempts_below_one_rejected(value, capsys):
    with pytest.raises(SystemExit) as exc_info:
        _parse_create("--image", "img-1", "--flavor", "g4-highcpu-1", "--probe-max-attempts", value)
    assert exc_info.value.code == 2
    assert "must be at least 1" in capsys.readouterr().err


def test_handle_create_passes_bootstrap_timeout(monkeypatch, tmp_path):
    for var in ("JOYENT_URL", "JOYENT_USERNAME", "JOYENT_PASSWORD", "JOYENT_API_VERSION"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    args = _parse_create("--image", "img-1", "--flavor", "g4-highcpu-1", "--bootstrap-timeout", "600", "--dry-run")

    with patch("joyctl.commands.server.create.provision", new=AsyncMock(return_value=0)) as mock_provision:
        rc = asyncio.run(_handle_create(args))

    assert rc == 0
    bootstrap = mock_provision.await_args.args[3]
    assert bootstrap.func is run_bootstrap
    assert bootstrap.keywords == {"timeout": 600.0}
