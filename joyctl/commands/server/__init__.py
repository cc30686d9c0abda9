"""Server command: create and delete Joyent machines."""


def register_server_command(subparsers):
    """Register the 'server' command with create/delete action subparsers."""
    from joyctl.commands.server.create import register_create_action
    from joyctl.commands.server.delete import register_delete_action

    server_parser = subparsers.add_parser("server", help="Manage Joyent machines")
    action_subparsers = server_parser.add_subparsers(dest="action", required=True)

    register_create_action(action_subparsers)
    register_delete_action(action_subparsers)
