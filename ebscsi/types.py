"""Status codes, errors and the value types exchanged by the driver services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum

from ebscsi.identity import DRIVER_NAME

AWS_PARTITION_KEY = f"topology.{DRIVER_NAME}/partition"
AWS_ACCOUNT_ID_KEY = f"topology.{DRIVER_NAME}/account-id"
AWS_REGION_KEY = f"topology.{DRIVER_NAME}/region"
AWS_OUTPOST_ID_KEY = f"topology.{DRIVER_NAME}/outpost-id"

WELL_KNOWN_TOPOLOGY_KEY = "topology.kubernetes.io/zone"
# Deprecated: use WELL_KNOWN_TOPOLOGY_KEY instead.
TOPOLOGY_KEY = f"topology.{DRIVER_NAME}/zone"


class Code(IntEnum):
    """RPC status codes carried by errors raised to callers."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16

    def __str__(self) -> str:
        if self is Code.OK:
            return "OK"
        return "".join(part.capitalize() for part in self.name.split("_"))


class CsiError(Exception):
    """An error answered to a caller, with a status code and a message."""

    def __init__(self, code: Code, message: str = "") -> None:
        super().__init__(message)
        self.code = Code(code)
        self.message = message

    def __str__(self) -> str:
        return f"rpc error: code = {self.code} desc = {self.message}"


class CloudError(Exception):
    """Base class for errors reported by the cloud provider."""

    default_message = "cloud provider error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)


class NotFoundError(CloudError):
    """The requested resource does not exist."""

    default_message = "Resource was not found"


class IdempotentParameterMismatchError(CloudError):
    """A repeated request used different parameters from the first one."""

    default_message = "Parameters on this idempotent request are inconsistent with earlier requests"


class VolumeInUseError(CloudError):
    """The volume is attached to another instance."""

    default_message = "Volume is in use by another instance"


class InvalidMaxResultsError(CloudError):
    """The requested page size cannot be mapped to the provider's limits."""

    default_message = "Invalid maximum number of results"


class AccessMode(IntEnum):
    """How a volume may be accessed by nodes."""

    UNKNOWN = 0
    SINGLE_NODE_WRITER = 1
    SINGLE_NODE_READER_ONLY = 2
    MULTI_NODE_READER_ONLY = 3
    MULTI_NODE_SINGLE_WRITER = 4
    MULTI_NODE_MULTI_WRITER = 5
    SINGLE_NODE_SINGLE_WRITER = 6
    SINGLE_NODE_MULTI_WRITER = 7


@dataclass
class VolumeCapability:
    """An access mode together with an optional block or mount access type."""

    access_mode: AccessMode = AccessMode.UNKNOWN
    block: bool = False
    mount: bool = False
    fs_type: str = ""
    mount_flags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.access_mode = AccessMode(self.access_mode)
        if self.block and self.mount:
            raise ValueError("a volume capability is either block or mount, not both")
        if not self.mount and (self.fs_type or self.mount_flags):
            raise ValueError("fs_type and mount_flags need a mount access type")

    @classmethod
    def for_mount(
        cls,
        fs_type: str = "",
        access_mode: AccessMode = AccessMode.SINGLE_NODE_WRITER,
        mount_flags: list[str] | None = None,
    ) -> VolumeCapability:
        """Build a capability for a filesystem mount."""
        return cls(
            access_mode=access_mode,
            mount=True,
            fs_type=fs_type,
            mount_flags=list(mount_flags or []),
        )

    @classmethod
    def for_block(cls, access_mode: AccessMode = AccessMode.SINGLE_NODE_WRITER) -> VolumeCapability:
        """Build a capability for a raw block device."""
        return cls(access_mode=access_mode, block=True)


@dataclass
class Topology:
    """A set of topology segments, such as a zone."""

    segments: dict[str, str] = field(default_factory=dict)


@dataclass
class TopologyRequirement:
    """Topologies a volume must be, and would preferably be, reachable from."""

    requisite: list[Topology] = field(default_factory=list)
    preferred: list[Topology] = field(default_factory=list)


@dataclass
class CapacityRange:
    """Requested size bounds in bytes; zero means unset."""

    required_bytes: int = 0
    limit_bytes: int = 0


@dataclass
class Disk:
    """A disk as reported by the cloud provider."""

    volume_id: str = ""
    capacity_gib: int = 0
    availability_zone: str = ""
    snapshot_id: str = ""
    outpost_arn: str = ""
    attachments: list[str] = field(default_factory=list)


@dataclass
class Snapshot:
    """A snapshot as reported by the cloud provider."""

    snapshot_id: str = ""
    source_volume_id: str = ""
    size: int = 0
    creation_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ready_to_use: bool = False


@dataclass
class DiskOptions:
    """Parameters for creating a disk."""

    capacity_bytes: int = 0
    tags: dict[str, str] = field(default_factory=dict)
    volume_type: str = ""
    iops_per_gb: int = 0
    allow_iops_per_gb_increase: bool = False
    iops: int = 0
    throughput: int = 0
    availability_zone: str = ""
    outpost_arn: str = ""
    encrypted: bool = False
    block_express: bool = False
    kms_key_id: str = ""
    snapshot_id: str = ""


@dataclass
class SnapshotOptions:
    """Parameters for creating a snapshot."""

    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ListSnapshotsResult:
    """One page of snapshots and the token for the next page."""

    snapshots: list[Snapshot] = field(default_factory=list)
    next_token: str = ""


@dataclass
class Volume:
    """A provisioned volume as answered to the caller."""

    volume_id: str = ""
    capacity_bytes: int = 0
    volume_context: dict[str, str] = field(default_factory=dict)
    accessible_topology: list[Topology] = field(default_factory=list)
    content_snapshot_id: str = ""


@dataclass
class SnapshotInfo:
    """A snapshot as answered to the caller."""

    snapshot_id: str = ""
    source_volume_id: str = ""
    size_bytes: int = 0
    creation_time: datetime | None = None
    ready_to_use: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> SnapshotInfo:
        """Describe a provider snapshot for the caller."""
        return cls(
            snapshot_id=snapshot.snapshot_id,
            source_volume_id=snapshot.source_volume_id,
            size_bytes=snapshot.size,
            creation_time=snapshot.creation_time,
            ready_to_use=snapshot.ready_to_use,
        )