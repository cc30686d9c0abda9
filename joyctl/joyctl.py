#!/usr/bin/env python3
"""Joyent machine tools — CLI entrypoint."""

import argparse

from joyctl.commands.flavor import register_flavor_command
from joyctl.commands.server import register_server_command
from joyctl.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="List Joyent flavors and provision Chef-bootstrapped machines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_flavor_command(subparsers)
    register_server_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
