"""Joyent connection configuration: CLI flags, environment, then YAML config file."""

import logging
import os
import sys
from dataclasses import dataclass

import yaml

from joyctl.provisioning.joyent import API_VERSION, DEFAULT_API_URL
from joyctl.redact import register_secret

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.joyctl/config.yaml"

# config key -> environment variable
_ENV_VARS = {
    "url": "JOYENT_URL",
    "username": "JOYENT_USERNAME",
    "password": "JOYENT_PASSWORD",
    "api_version": "JOYENT_API_VERSION",
}


@dataclass(frozen=True)
class JoyentConfig:
    url: str = DEFAULT_API_URL
    username: str | None = None
    password: str | None = None
    api_version: str = API_VERSION


def _expand_path(path: str) -> str:
    """Expand user home directory and environment variables in path."""
    return os.path.expanduser(os.path.expandvars(path))


def load_config_file(config_path=None) -> dict:
    """Load the ``joyent:`` section of a YAML config file.

    A missing file is fine when *config_path* is the default; an explicitly
    given path must exist.
    """
    explicit = config_path is not None
    path = _expand_path(config_path or DEFAULT_CONFIG_PATH)
    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if explicit:
            logger.error(f"Error: Config file '{path}' not found.")
            sys.exit(1)
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML config: {e}")
        sys.exit(1)

    if not isinstance(config, dict):
        logger.error(f"Error: Config file '{path}' must contain a mapping.")
        sys.exit(1)
    section = config.get("joyent") or {}
    if not isinstance(section, dict):
        logger.error(f"Error: 'joyent' section in '{path}' must be a mapping.")
        sys.exit(1)
    return section


def resolve_joyent_config(args, require_credentials=True) -> JoyentConfig:
    """Resolve each setting from CLI flag, env var, config file, then default.

    Exits with status 1 when credentials are required but missing.
    """
    file_config = load_config_file(getattr(args, "config", None))
    values = {}
    for key, env_var in _ENV_VARS.items():
        value = getattr(args, key, None) or os.environ.get(env_var) or file_config.get(key)
        if value is not None:
            values[key] = str(value)

    config = JoyentConfig(**values)
    register_secret(config.password)

    if require_credentials and not (config.username and config.password):
        logger.error("Error: Joyent credentials required. Use --username/--password, set JOYENT_USERNAME/JOYENT_PASSWORD, or add them to the config file.")
        sys.exit(1)
    return config


def add_connection_arguments(parser):
    """Register the connection flags shared by all commands."""
    parser.add_argument("--config", default=None, help=f"YAML config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--url", default=None, help=f"CloudAPI URL (fallback: JOYENT_URL, default: {DEFAULT_API_URL})")
    parser.add_argument("--username", default=None, help="CloudAPI username (fallback: JOYENT_USERNAME env var)")
    parser.add_argument("--password", default=None, help="CloudAPI password (fallback: JOYENT_PASSWORD env var)")
    parser.add_argument("--api-version", default=None, help=f"X-Api-Version header (default: {API_VERSION})")
    parser.add_argument("--dry-run", action="store_true", help="Print requests without executing")
