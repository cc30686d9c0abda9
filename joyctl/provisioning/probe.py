"""TCP reachability probing: wait for a remote service (sshd) to accept connections."""

import asyncio
import errno
import logging
from enum import Enum

from joyctl.provisioning.errors import PortUnreachableError, ProbePermissionError

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0
DEFAULT_PROBE_BACKOFF = 2.0

_UNREACHABLE_ERRNOS = {errno.EHOSTUNREACH, errno.ENETUNREACH}


class ProbeOutcome(Enum):
    OPEN = "open"
    TIMEOUT = "timeout"
    REFUSED = "refused"
    UNREACHABLE = "unreachable"
    PERMISSION_DENIED = "permission_denied"


# Outcomes after which the next attempt is delayed by the backoff.
_BACKOFF_OUTCOMES = {ProbeOutcome.REFUSED, ProbeOutcome.UNREACHABLE}


async def probe_port(host, port=22, timeout=DEFAULT_PROBE_TIMEOUT, on_open=None):
    """Attempt one TCP connection to host:port.

    The port counts as open once the peer sends something (the SSH banner)
    or closes. Connecting and reading the banner share one *timeout*.
    *on_open* is called with the banner line while the connection is still
    open; its exceptions propagate unchanged. The connection is always
    closed before returning.

    Returns:
        ProbeOutcome. OSErrors other than timeout, refusal, unreachable
        and permission errors propagate.
    """
    writer = None
    try:
        try:
            async with asyncio.timeout(timeout):
                reader, writer = await asyncio.open_connection(host, port)
                banner = await reader.readline()
        except TimeoutError:
            return ProbeOutcome.TIMEOUT
        except ConnectionRefusedError:
            return ProbeOutcome.REFUSED
        except PermissionError:
            return ProbeOutcome.PERMISSION_DENIED
        except OSError as e:
            if e.errno in _UNREACHABLE_ERRNOS:
                return ProbeOutcome.UNREACHABLE
            raise

        banner = banner.decode(errors="replace").strip()
        logger.debug(f"sshd accepting connections on {host}, banner is {banner}")
        # on_open errors propagate as-is, never as a probe outcome
        if on_open is not None:
            await _call(on_open, banner)
        return ProbeOutcome.OPEN
    finally:
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"Error closing probe connection to {host}:{port}: {e}")


async def _call(fn, *args):
    result = fn(*args)
    if asyncio.iscoroutine(result):
        await result


async def wait_for_port(
    host,
    port=22,
    probe_timeout=DEFAULT_PROBE_TIMEOUT,
    backoff=DEFAULT_PROBE_BACKOFF,
    max_attempts=None,
    retry_permission_denied=False,
    on_attempt=None,
    on_open=None,
):
    """Probe host:port until it accepts a connection.

    Refused and unreachable attempts are followed by *backoff* seconds of
    sleep, timeouts are retried immediately. A permission error is fatal
    unless *retry_permission_denied* is set, since it will not clear up
    on its own.

    Returns:
        Number of attempts made, including the successful one.

    Raises:
        ProbePermissionError: local policy forbids the connection.
        PortUnreachableError: *max_attempts* exhausted.
    """
    attempt = 0
    while True:
        attempt += 1
        outcome = await probe_port(host, port, timeout=probe_timeout, on_open=on_open)
        if outcome is ProbeOutcome.OPEN:
            return attempt

        logger.debug(f"Probe {attempt} of {host}:{port}: {outcome.value}")
        if on_attempt is not None:
            on_attempt(attempt, outcome)

        if outcome is ProbeOutcome.PERMISSION_DENIED and not retry_permission_denied:
            raise ProbePermissionError(f"Permission denied connecting to {host}:{port}")
        if max_attempts is not None and attempt >= max_attempts:
            raise PortUnreachableError(f"{host}:{port} not reachable after {attempt} attempts (last: {outcome.value})")
        if outcome in _BACKOFF_OUTCOMES:
            await asyncio.sleep(backoff)
