"""Server provisioning orchestration: create, wait, pick an address, probe, bootstrap."""

import logging
from dataclasses import dataclass

from joyctl.provisioning.addresses import select_public_address
from joyctl.provisioning.errors import NoPublicAddressError
from joyctl.provisioning.polling import DEFAULT_READY_INTERVAL, wait_until_ready
from joyctl.provisioning.probe import DEFAULT_PROBE_BACKOFF, DEFAULT_PROBE_TIMEOUT, wait_for_port
from joyctl.provisioning.types import (
    BootstrapSpec,
    Created,
    ProviderRejected,
    ProvisionedResource,
    ProvisionRequest,
    TransportFailed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerCreateSettings:
    """Everything `server create` needs besides the request itself. Built once from CLI args."""

    run_list: tuple[str, ...] = ()
    ssh_user: str = "root"
    identity_file: str | None = None
    node_name: str | None = None
    distro: str = "chef-full"
    prerelease: bool = False
    host_key_verify: bool = True
    environment: str | None = None
    do_not_bootstrap: bool = False
    ssh_port: int = 22
    ready_interval: float = DEFAULT_READY_INTERVAL
    ready_timeout: float | None = None
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    probe_backoff: float = DEFAULT_PROBE_BACKOFF
    probe_max_attempts: int | None = None
    retry_permission_denied: bool = False
    dry_run: bool = False


def build_bootstrap_spec(settings: ServerCreateSettings, resource: ProvisionedResource, address: str, name=None) -> BootstrapSpec:
    """Node name precedence: --node-name, then the requested machine name, then the machine ID."""
    return BootstrapSpec(
        address=address,
        node_name=settings.node_name or name or resource.id,
        run_list=tuple(settings.run_list),
        ssh_user=settings.ssh_user,
        identity_file=settings.identity_file,
        distro=settings.distro,
        prerelease=settings.prerelease,
        host_key_verify=settings.host_key_verify,
        environment=settings.environment,
    )


def _progress_mark(*_):
    print(".", end="", flush=True)


def _progress_done(*_):
    print("done", flush=True)


def log_machine_summary(resource: ProvisionedResource):
    """Log the created machine's details, skipping empty fields."""
    fields = [
        ("ID", resource.id),
        ("Name", resource.name),
        ("State", resource.raw_state or resource.state.value),
        ("Type", resource.type),
        ("Dataset", resource.dataset),
        ("IP's", ", ".join(ip for ip in resource.ips if ip)),
    ]
    logger.info("Created machine:")
    for label, value in fields:
        if value:
            logger.info(f"{label}: {value}")


async def provision(request: ProvisionRequest, settings: ServerCreateSettings, provider, bootstrap) -> int:
    """Create a machine and bootstrap it.

    Args:
        request: what to create.
        settings: bootstrap and timing settings.
        provider: object with async create_machine(request) -> CreateOutcome
            and get_machine(id) -> ProvisionedResource.
        bootstrap: async callable(BootstrapSpec) -> Any. Its result is not
            inspected; it reports its own failures.

    Returns:
        Process exit code: 0 on success, 1 when the provider rejects the request.

    Raises:
        The transport error of a TransportFailed outcome, unmodified.
        NoPublicAddressError, ResourceFailedError, ReadinessTimeoutError,
        ProbePermissionError, PortUnreachableError.
    """
    request.validate()
    logger.info(f"Creating machine {request.name or settings.node_name or ''}".rstrip())

    outcome = await provider.create_machine(request)
    if isinstance(outcome, ProviderRejected):
        logger.error(f"Error: {outcome.message}")
        return 1
    if isinstance(outcome, TransportFailed):
        raise outcome.error
    if not isinstance(outcome, Created):
        raise TypeError(f"Unexpected create outcome: {outcome!r}")

    if settings.dry_run:
        logger.info(f"[dry-run] Would wait for machine {outcome.resource.id} to be running, then probe SSH and bootstrap.")
        return 0

    machine_id = outcome.resource.id
    logger.debug(f"Machine {machine_id} created, waiting for it to be ready")
    resource = await wait_until_ready(
        lambda: provider.get_machine(machine_id),
        is_ready=lambda r: r.is_ready,
        is_failed=lambda r: r.is_failed,
        interval=settings.ready_interval,
        timeout=settings.ready_timeout,
        on_attempt=_progress_mark,
    )
    print(flush=True)

    log_machine_summary(resource)

    if settings.do_not_bootstrap:
        logger.info("Not bootstrapping this node, you'll have to run a separate bootstrap cycle with a run_list yourself")
        return 0

    address = select_public_address(resource.ips)
    if address is None:
        ips = ", ".join(resource.ips) or "none"
        raise NoPublicAddressError(f"Machine {resource.id} has no public IP address to bootstrap (IPs: {ips})")

    logger.info(f"Attempting to bootstrap on {address}")
    attempts = await wait_for_port(
        address,
        settings.ssh_port,
        probe_timeout=settings.probe_timeout,
        backoff=settings.probe_backoff,
        max_attempts=settings.probe_max_attempts,
        retry_permission_denied=settings.retry_permission_denied,
        on_attempt=_progress_mark,
        on_open=_progress_done,
    )
    logger.debug(f"SSH reachable on {address} after {attempts} attempt(s)")

    spec = build_bootstrap_spec(settings, resource, address, name=request.name)
    await bootstrap(spec)
    return 0
