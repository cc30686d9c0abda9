"""Generic readiness polling for provider-side resources."""

import asyncio
import logging
import time

from joyctl.provisioning.errors import ReadinessTimeoutError, ResourceFailedError

logger = logging.getLogger(__name__)

DEFAULT_READY_INTERVAL = 2.0


async def wait_until_ready(refresh, is_ready, is_failed=None, interval=DEFAULT_READY_INTERVAL, timeout=None, on_attempt=None):
    """Refresh a resource until *is_ready* holds for it.

    Args:
        refresh: async callable returning the latest resource snapshot.
            Errors it raises propagate immediately.
        is_ready: predicate over a snapshot.
        is_failed: optional predicate; a match raises ResourceFailedError.
        interval: seconds to sleep between reads.
        timeout: overall limit in seconds, None for no limit.
        on_attempt: optional callable(attempt, resource) invoked after every
            read that was not ready (progress output).

    Returns:
        The first snapshot for which *is_ready* is true.
    """
    start = time.monotonic()
    attempt = 0
    while True:
        attempt += 1
        resource = await refresh()
        if is_ready(resource):
            logger.debug(f"Resource ready after {attempt} read(s)")
            return resource
        if is_failed is not None and is_failed(resource):
            raise ResourceFailedError(resource)
        if on_attempt is not None:
            on_attempt(attempt, resource)
        if timeout is not None and time.monotonic() - start >= timeout:
            raise ReadinessTimeoutError(f"Timeout after {timeout}s waiting for resource to become ready ({attempt} reads)")
        await asyncio.sleep(interval)
