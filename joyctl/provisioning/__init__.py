"""Machine provisioning: types, address selection, polling, probing, Joyent provider."""

from joyctl.provisioning.addresses import classify_address, select_public_address
from joyctl.provisioning.bootstrap import knife_bootstrap_cmd, run_bootstrap
from joyctl.provisioning.joyent import JoyentClient
from joyctl.provisioning.orchestrate import ServerCreateSettings, provision
from joyctl.provisioning.polling import wait_until_ready
from joyctl.provisioning.probe import ProbeOutcome, probe_port, wait_for_port
from joyctl.provisioning.shell import run_shell_cmd
from joyctl.provisioning.types import (
    AddressClass,
    BootstrapSpec,
    ProvisionedResource,
    ProvisionRequest,
)

__all__ = [
    "AddressClass",
    "BootstrapSpec",
    "JoyentClient",
    "ProbeOutcome",
    "ProvisionRequest",
    "ProvisionedResource",
    "ServerCreateSettings",
    "classify_address",
    "knife_bootstrap_cmd",
    "probe_port",
    "provision",
    "run_bootstrap",
    "run_shell_cmd",
    "select_public_address",
    "wait_for_port",
    "wait_until_ready",
]
