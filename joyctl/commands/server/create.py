"""'server create' CLI handler."""

import argparse
import asyncio
import functools
import logging
import re
import sys

from joyctl.config import add_connection_arguments, resolve_joyent_config
from joyctl.provisioning.bootstrap import run_bootstrap
from joyctl.provisioning.errors import ProvisioningError
from joyctl.provisioning.joyent import JoyentClient
from joyctl.provisioning.orchestrate import ServerCreateSettings, provision
from joyctl.provisioning.polling import DEFAULT_READY_INTERVAL
from joyctl.provisioning.probe import DEFAULT_PROBE_BACKOFF, DEFAULT_PROBE_TIMEOUT
from joyctl.provisioning.types import ProvisionRequest

logger = logging.getLogger(__name__)


def parse_run_list(value):
    """Split a run list on commas and whitespace: 'role[web], recipe[ntp]' -> (...)."""
    if not value:
        return ()
    return tuple(item for item in re.split(r"[\s,]+", value) if item)


def positive_int(value):
    """argparse type: an integer >= 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def settings_from_args(args) -> ServerCreateSettings:
    return ServerCreateSettings(
        run_list=parse_run_list(args.run_list),
        ssh_user=args.ssh_user,
        identity_file=args.identity_file,
        node_name=args.node_name,
        distro=args.distro,
        prerelease=args.prerelease,
        host_key_verify=not args.do_not_host_key_verify,
        environment=args.environment,
        do_not_bootstrap=args.do_not_bootstrap,
        ready_interval=args.ready_interval,
        ready_timeout=args.ready_timeout,
        probe_timeout=args.probe_timeout,
        probe_backoff=args.probe_backoff,
        probe_max_attempts=args.probe_max_attempts,
        retry_permission_denied=args.retry_permission_denied,
        dry_run=args.dry_run,
    )


def handle_create(args):
    """CLI handler for 'server create'."""
    rc = asyncio.run(_handle_create(args))
    sys.exit(rc)


async def _handle_create(args):
    request = ProvisionRequest(image=args.image, flavor=args.flavor, name=args.name)
    try:
        request.validate()
    except ValueError as e:
        logger.error(f"Error: {e}")
        return 1

    settings = settings_from_args(args)
    config = resolve_joyent_config(args, require_credentials=not args.dry_run)
    client = JoyentClient.from_config(config, dry_run=args.dry_run)

    try:
        bootstrap = functools.partial(run_bootstrap, timeout=args.bootstrap_timeout)
        return await provision(request, settings, client, bootstrap)
    except ProvisioningError as e:
        print(flush=True)
        logger.error(f"Error: {e}")
        return 1


def register_create_action(subparsers):
    """Register 'server create'."""
    parser = subparsers.add_parser("create", help="Create a machine and bootstrap it with Chef")
    parser.add_argument("--name", default=None, help="Name for this machine")
    parser.add_argument("-f", "--flavor", required=True, help="Flavor/package for the machine")
    parser.add_argument("-I", "--image", required=True, help="Image (dataset) ID for the machine")
    parser.add_argument("-r", "--run-list", default="", help="Comma separated list of roles/recipes to apply")
    parser.add_argument("-x", "--ssh-user", default="root", help="The SSH username (default: root)")
    parser.add_argument("-i", "--identity-file", default=None, help="The SSH identity file used for authentication")
    parser.add_argument("-N", "--node-name", default=None, help="The Chef node name for the new node (default: machine name or ID)")
    parser.add_argument("--prerelease", action="store_true", help="Install the pre-release chef gems")
    parser.add_argument("-d", "--distro", default="chef-full", help="Bootstrap a distro using a template (default: chef-full)")
    parser.add_argument("-E", "--environment", default=None, help="The Chef environment for the new node")
    parser.add_argument("--do-not-host-key-verify", action="store_true", help="Disable host key verification")
    parser.add_argument("--do-not-bootstrap", action="store_true", help="Don't bootstrap the new node, stop after creation")
    parser.add_argument(
        "--ready-interval", type=float, default=DEFAULT_READY_INTERVAL, help=f"Seconds between machine state checks (default: {DEFAULT_READY_INTERVAL})"
    )
    parser.add_argument("--ready-timeout", type=float, default=None, help="Seconds to wait for the machine to be running (default: no limit)")
    parser.add_argument(
        "--probe-timeout", type=float, default=DEFAULT_PROBE_TIMEOUT, help=f"Seconds per SSH probe attempt, connect and banner read together (default: {DEFAULT_PROBE_TIMEOUT})"
    )
    parser.add_argument(
        "--probe-backoff",
        type=float,
        default=DEFAULT_PROBE_BACKOFF,
        help=f"Seconds to wait after a refused/unreachable probe (default: {DEFAULT_PROBE_BACKOFF})",
    )
    parser.add_argument("--probe-max-attempts", type=positive_int, default=None, help="Give up after this many SSH probes (default: no limit)")
    parser.add_argument(
        "--retry-permission-denied", action="store_true", help="Keep probing when the local firewall denies the connection"
    )
    parser.add_argument("--bootstrap-timeout", type=float, default=None, help="Seconds to allow knife bootstrap to run (default: no limit)")
    add_connection_arguments(parser)
    parser.set_defaults(func=handle_create)
