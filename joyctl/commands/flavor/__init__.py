"""Flavor command: list the packages machines can be created with."""

import asyncio
import logging

from joyctl.config import add_connection_arguments, resolve_joyent_config
from joyctl.provisioning.joyent import JoyentClient

logger = logging.getLogger(__name__)


def _gb(mib):
    return f"{mib // 1024} GB"


def format_flavor_table(flavors):
    """Render flavors sorted by memory as Name/RAM/Disk/Swap rows."""
    rows = [("Name", "RAM", "Disk", "Swap")]
    for flavor in sorted(flavors, key=lambda f: f.memory):
        rows.append((flavor.name, _gb(flavor.memory), _gb(flavor.disk), _gb(flavor.swap)))

    widths = [max(len(row[i]) for row in rows) for i in range(4)]
    return ["  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip() for row in rows]


def handle_flavor_list(args):
    """CLI handler for 'flavor list'."""
    asyncio.run(_handle_flavor_list(args))


async def _handle_flavor_list(args):
    config = resolve_joyent_config(args, require_credentials=not args.dry_run)
    client = JoyentClient.from_config(config, dry_run=args.dry_run)
    flavors = await client.list_flavors()
    for line in format_flavor_table(flavors):
        logger.info(line)


def register_flavor_command(subparsers):
    """Register the 'flavor' command with its 'list' action."""
    flavor_parser = subparsers.add_parser("flavor", help="Inspect machine flavors (packages)")
    action_subparsers = flavor_parser.add_subparsers(dest="action", required=True)

    list_parser = action_subparsers.add_parser("list", help="List available flavors")
    add_connection_arguments(list_parser)
    list_parser.set_defaults(func=handle_flavor_list)
