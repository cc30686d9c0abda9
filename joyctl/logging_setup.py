"""CLI logging setup: plain %(message)s output on stdout."""

import logging
import sys

from joyctl.redact import SecretRedactingFilter


def setup_cli_logging(verbose=False):
    """Configure the root logger so log lines read like print() output.

    Records go through SecretRedactingFilter at the handler, so records from
    child loggers are covered as well.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
