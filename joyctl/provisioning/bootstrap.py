"""Chef bootstrap: hand a freshly created machine over to `knife bootstrap`."""

import logging

from joyctl.provisioning.shell import run_shell_cmd
from joyctl.provisioning.types import BootstrapSpec

logger = logging.getLogger(__name__)


def knife_bootstrap_cmd(spec: BootstrapSpec) -> list[str]:
    """Build the `knife bootstrap` command line for *spec*."""
    cmd = ["knife", "bootstrap", spec.address, "--ssh-user", spec.ssh_user, "--node-name", spec.node_name]
    if spec.identity_file:
        cmd.extend(["--identity-file", spec.identity_file])
    if spec.run_list:
        cmd.extend(["--run-list", ",".join(spec.run_list)])
    if spec.distro:
        cmd.extend(["--distro", spec.distro])
    if spec.environment:
        cmd.extend(["--environment", spec.environment])
    if spec.prerelease:
        cmd.append("--prerelease")
    if not spec.host_key_verify:
        cmd.append("--no-host-key-verify")
    return cmd


async def run_bootstrap(spec: BootstrapSpec, timeout=None):
    """Run `knife bootstrap` against spec.address, streaming its output.

    *timeout* bounds the whole knife run in seconds, None for no limit.

    Returns:
        The knife exit code. Failures are reported here; callers do not
        need to act on the code.
    """
    cmd = knife_bootstrap_cmd(spec)
    logger.debug(f"Bootstrap command: {' '.join(cmd)}")
    rc, _, stderr = await run_shell_cmd(cmd, timeout=timeout, stream=True)
    if rc != 0:
        logger.error(f"Bootstrap of {spec.node_name} ({spec.address}) failed with exit code {rc}")
        if stderr:
            logger.error(stderr)
    return rc
