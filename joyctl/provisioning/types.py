"""Shared data types for machine provisioning."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class ProvisionRequest:
    """What to create: image and flavor are required, name is optional."""

    image: str
    flavor: str
    name: str | None = None

    def validate(self):
        if not self.image:
            raise ValueError("Image ID is required to create a machine")
        if not self.flavor:
            raise ValueError("Flavor (package) is required to create a machine")


class MachineState(Enum):
    PROVISIONING = "provisioning"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"
    DELETED = "deleted"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_ready(self) -> bool:
        return self is MachineState.RUNNING

    @property
    def is_failed(self) -> bool:
        return self in (MachineState.FAILED, MachineState.DELETED)


@dataclass(frozen=True)
class ProvisionedResource:
    """Snapshot of a machine as last read from the provider."""

    id: str
    name: str = ""
    state: MachineState = MachineState.UNKNOWN
    type: str = ""
    dataset: str = ""
    ips: tuple[str, ...] = ()
    raw_state: str = ""

    @property
    def is_ready(self) -> bool:
        return self.state.is_ready

    @property
    def is_failed(self) -> bool:
        return self.state.is_failed

    @classmethod
    def from_api(cls, machine: dict) -> "ProvisionedResource":
        """Build from a CloudAPI machine document.

        Older API versions report the image as ``dataset``, newer ones as ``image``.
        """
        raw_state = machine.get("state") or ""
        return cls(
            id=str(machine.get("id", "")),
            name=machine.get("name") or "",
            state=MachineState.parse(raw_state),
            type=machine.get("type") or machine.get("brand") or "",
            dataset=machine.get("dataset") or machine.get("image") or "",
            ips=tuple(machine.get("ips") or ()),
            raw_state=raw_state,
        )


class AddressClass(Enum):
    LOOPBACK = "loopback"
    LINK_LOCAL = "link-local"
    PRIVATE = "private"
    PUBLIC = "public"


@dataclass(frozen=True)
class AddressCandidate:
    address: str
    address_class: AddressClass

    @property
    def is_public(self) -> bool:
        return self.address_class is AddressClass.PUBLIC


@dataclass(frozen=True)
class BootstrapSpec:
    """Everything `knife bootstrap` needs to configure one node."""

    address: str
    node_name: str
    run_list: tuple[str, ...] = ()
    ssh_user: str = "root"
    identity_file: str | None = None
    distro: str = "chef-full"
    prerelease: bool = False
    host_key_verify: bool = True
    environment: str | None = None


@dataclass(frozen=True)
class Flavor:
    """A provider package. Sizes are in MiB."""

    name: str
    memory: int = 0
    disk: int = 0
    swap: int = 0

    @classmethod
    def from_api(cls, package: dict) -> "Flavor":
        return cls(
            name=str(package.get("name", "")),
            memory=int(package.get("memory") or 0),
            disk=int(package.get("disk") or 0),
            swap=int(package.get("swap") or 0),
        )


# ── Create outcomes ───────────────────────────────────────────────


@dataclass(frozen=True)
class Created:
    resource: ProvisionedResource


@dataclass(frozen=True)
class ProviderRejected:
    """The provider refused the request with a decodable error body."""

    message: str
    code: str = ""


@dataclass(frozen=True)
class TransportFailed:
    """The request failed without a decodable error body."""

    error: Exception = field(compare=False)


CreateOutcome = Created | ProviderRejected | TransportFailed
