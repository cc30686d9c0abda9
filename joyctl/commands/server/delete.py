"""'server delete' CLI handler."""

import asyncio
import logging

from joyctl.config import add_connection_arguments, resolve_joyent_config
from joyctl.provisioning.joyent import JoyentClient

logger = logging.getLogger(__name__)


def handle_delete(args):
    """CLI handler for 'server delete'."""
    asyncio.run(_handle_delete(args))


async def _handle_delete(args):
    config = resolve_joyent_config(args, require_credentials=not args.dry_run)
    client = JoyentClient.from_config(config, dry_run=args.dry_run)
    await client.delete_machine(args.id)
    if not args.dry_run:
        logger.info("Machine deleted.")


def register_delete_action(subparsers):
    parser = subparsers.add_parser("delete", help="Delete a machine")
    parser.add_argument("--id", required=True, help="Machine ID")
    add_connection_arguments(parser)
    parser.set_defaults(func=handle_delete)
