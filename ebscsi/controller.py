"""Controller service: provisioning, attaching, resizing and snapshotting volumes."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Protocol

from ebscsi.inflight import VOLUME_OPERATION_ALREADY_EXISTS_ERROR_MSG, InFlight
from ebscsi.options import DriverOptions
from ebscsi.topology import get_outpost_arn, parse_arn, pick_availability_zone
from ebscsi.types import (
    AWS_ACCOUNT_ID_KEY,
    AWS_OUTPOST_ID_KEY,
    AWS_PARTITION_KEY,
    AWS_REGION_KEY,
    TOPOLOGY_KEY,
    AccessMode,
    CapacityRange,
    CloudError,
    Code,
    CsiError,
    Disk,
    DiskOptions,
    IdempotentParameterMismatchError,
    InvalidMaxResultsError,
    ListSnapshotsResult,
    NotFoundError,
    Snapshot,
    SnapshotInfo,
    SnapshotOptions,
    Topology,
    TopologyRequirement,
    Volume,
    VolumeCapability,
    VolumeInUseError,
)

logger = logging.getLogger(__name__)

GIB = 1024 * 1024 * 1024
DEFAULT_VOLUME_SIZE = 100 * GIB

VOLUME_TYPE_IO1 = "io1"
VOLUME_TYPE_IO2 = "io2"

# Storage class parameters, compared in lower case.
VOLUME_TYPE_KEY = "type"
IOPS_PER_GB_KEY = "iopspergb"
ALLOW_AUTO_IOPS_PER_GB_INCREASE_KEY = "allowautoiopspergbincrease"
IOPS_KEY = "iops"
THROUGHPUT_KEY = "throughput"
ENCRYPTED_KEY = "encrypted"
KMS_KEY_ID_KEY = "kmskeyid"
PVC_NAME_KEY = "csi.storage.k8s.io/pvc/name"
PVC_NAMESPACE_KEY = "csi.storage.k8s.io/pvc/namespace"
PV_NAME_KEY = "csi.storage.k8s.io/pv/name"
BLOCK_EXPRESS_KEY = "blockexpress"
BLOCK_SIZE_KEY = "blocksize"
TAG_KEY_PREFIX = "tagSpecification"

# Snapshot class parameters, compared in lower case.
VOLUME_SNAPSHOT_NAME_KEY = "csi.storage.k8s.io/volumesnapshot/name"
VOLUME_SNAPSHOT_NAMESPACE_KEY = "csi.storage.k8s.io/volumesnapshot/namespace"
VOLUME_SNAPSHOT_CONTENT_NAME_KEY = "csi.storage.k8s.io/volumesnapshotcontent/name"
FAST_SNAPSHOT_RESTORE_AVAILABILITY_ZONES = "fastsnapshotrestoreavailabilityzones"

# Tags written on resources.
VOLUME_NAME_TAG_KEY = "CSIVolumeName"
SNAPSHOT_NAME_TAG_KEY = "CSIVolumeSnapshotName"
AWS_EBS_DRIVER_TAG_KEY = "ebs.csi.aws.com/cluster"
PVC_NAME_TAG = "kubernetes.io/created-for/pvc/name"
PVC_NAMESPACE_TAG = "kubernetes.io/created-for/pvc/namespace"
PV_NAME_TAG = "kubernetes.io/created-for/pv/name"
RESOURCE_LIFECYCLE_TAG_PREFIX = "kubernetes.io/cluster/"
RESOURCE_LIFECYCLE_OWNED = "owned"
NAME_TAG = "Name"
KUBERNETES_CLUSTER_TAG = "KubernetesCluster"
IS_MANAGED_BY_DRIVER = "true"

DEVICE_PATH_KEY = "devicePath"
VOLUME_ATTRIBUTE_PARTITION = "partition"

BLOCK_SIZE_EXCLUDED_FS_TYPES = frozenset({"ntfs"})

SUPPORTED_ACCESS_MODES = (AccessMode.SINGLE_NODE_WRITER,)

CONTROLLER_CAPABILITIES = (
    "CREATE_DELETE_VOLUME",
    "PUBLISH_UNPUBLISH_VOLUME",
    "CREATE_DELETE_SNAPSHOT",
    "LIST_SNAPSHOTS",
    "EXPAND_VOLUME",
)

_MAX_TAG_KEY_LENGTH = 128
_MAX_TAG_VALUE_LENGTH = 256
_RESERVED_TAG_PREFIX = "aws:"

_INTEGER = re.compile(r"[+-]?\d+")
_TEMPLATE_FIELD = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


class Cloud(Protocol):
    """What the controller needs from the cloud provider.

    Failures are reported by raising CloudError or one of its subclasses.
    """

    def create_disk(self, volume_name: str, options: DiskOptions) -> Disk: ...
    def delete_disk(self, volume_id: str) -> bool: ...
    def attach_disk(self, volume_id: str, node_id: str) -> str: ...
    def detach_disk(self, volume_id: str, node_id: str) -> None: ...
    def is_exist_instance(self, node_id: str) -> bool: ...
    def get_disk_by_id(self, volume_id: str) -> Disk: ...
    def resize_disk(self, volume_id: str, new_size_bytes: int) -> int: ...
    def availability_zones(self) -> Iterable[str]: ...
    def create_snapshot(self, volume_id: str, options: SnapshotOptions) -> Snapshot: ...
    def delete_snapshot(self, snapshot_id: str) -> bool: ...
    def get_snapshot_by_name(self, name: str) -> Snapshot: ...
    def get_snapshot_by_id(self, snapshot_id: str) -> Snapshot: ...
    def list_snapshots(
        self, source_volume_id: str, max_results: int, next_token: str
    ) -> ListSnapshotsResult: ...
    def enable_fast_snapshot_restores(self, availability_zones: list[str], snapshot_id: str) -> object: ...


def _round_up_bytes(size_bytes: int) -> int:
    return -(-size_bytes // GIB) * GIB


def _parse_int(value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"invalid integer {value!r}")
    return int(value)


def _unsupported_modes_error(capabilities: Sequence[VolumeCapability]) -> CsiError:
    modes = ", ".join(cap.access_mode.name for cap in capabilities)
    return CsiError(
        Code.INVALID_ARGUMENT,
        f"Volume capabilities {modes} not supported. Only AccessModes[ReadWriteOnce] supported.",
    )


def _interpolate(template: str, props: Mapping[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in props:
            raise ValueError(f"unknown template field {name!r}")
        return props[name]

    return _TEMPLATE_FIELD.sub(replace, template)


def _evaluate_tags(specs: Iterable[str], props: Mapping[str, str], warn_only: bool) -> dict[str, str]:
    """Turn "key=value" specifications into tags, filling in {{ .Field }} references."""
    tags: dict[str, str] = {}
    for spec in specs:
        try:
            key, sep, value = spec.partition("=")
            if not sep:
                raise ValueError(f"tag specification {spec!r} is not of the form key=value")
            tags[_interpolate(key, props)] = _interpolate(value, props)
        except ValueError:
            if not warn_only:
                raise
            logger.warning("Skipping invalid tag specification %r", spec)
    return tags


def _validate_extra_tags(tags: dict[str, str], warn_only: bool) -> None:
    """Check tag keys and values; with warn_only, invalid tags are dropped instead."""
    for key, value in list(tags.items()):
        problem = ""
        if not key or len(key) > _MAX_TAG_KEY_LENGTH:
            problem = f"tag key {key!r} must be 1 to {_MAX_TAG_KEY_LENGTH} characters"
        elif len(value) > _MAX_TAG_VALUE_LENGTH:
            problem = f"tag value for {key!r} exceeds {_MAX_TAG_VALUE_LENGTH} characters"
        elif key.lower().startswith(_RESERVED_TAG_PREFIX):
            problem = f"tag key {key!r} uses the reserved prefix {_RESERVED_TAG_PREFIX!r}"
        if problem:
            if not warn_only:
                raise ValueError(problem)
            logger.warning("Dropping invalid tag: %s", problem)
            del tags[key]


def is_valid_volume_capabilities(volume_capabilities: Iterable[VolumeCapability]) -> bool:
    """Whether every capability asks for a supported access mode."""
    return all(cap.access_mode in SUPPORTED_ACCESS_MODES for cap in volume_capabilities)


def is_valid_volume_context(volume_context: Mapping[str, str]) -> bool:
    """Whether the volume attributes, such as the partition, are well formed."""
    partition = volume_context.get(VOLUME_ATTRIBUTE_PARTITION)
    if partition is not None:
        try:
            number = _parse_int(partition)
        except ValueError:
            logger.error("failed to parse partition as int partition=%s", partition)
            return False
        if number < 0:
            logger.error("invalid partition config partition=%s", partition)
            return False
    return True


def get_vol_size_bytes(capacity_range: CapacityRange | None) -> int:
    """Size to provision: the default, or the required bytes rounded up to GiB."""
    if capacity_range is None:
        return DEFAULT_VOLUME_SIZE
    size = _round_up_bytes(capacity_range.required_bytes)
    if 0 < capacity_range.limit_bytes < size:
        raise CsiError(Code.INVALID_ARGUMENT, "After round-up, volume size exceeds the limit specified")
    return size


def _volume_from_disk(disk: Disk, block_size: str) -> Volume:
    segments = {TOPOLOGY_KEY: disk.availability_zone}
    try:
        arn = parse_arn(disk.outpost_arn)
    except ValueError:
        pass
    else:
        segments[AWS_REGION_KEY] = arn.region
        segments[AWS_PARTITION_KEY] = arn.partition
        segments[AWS_ACCOUNT_ID_KEY] = arn.account_id
        segments[AWS_OUTPOST_ID_KEY] = arn.resource.replace("outpost/", "")
    context = {BLOCK_SIZE_KEY: block_size} if block_size else {}
    return Volume(
        volume_id=disk.volume_id,
        capacity_bytes=disk.capacity_gib * GIB,
        volume_context=context,
        accessible_topology=[Topology(segments=segments)],
        content_snapshot_id=disk.snapshot_id,
    )


class ControllerService:
    """Serves controller requests against a cloud provider."""

    def __init__(
        self,
        cloud: Cloud,
        options: DriverOptions | None = None,
        in_flight: InFlight | None = None,
    ) -> None:
        self.cloud = cloud
        self.options = options if options is not None else DriverOptions()
        self.in_flight = in_flight if in_flight is not None else InFlight()

    @contextmanager
    def _track(self, key: str, busy_message: str) -> Iterator[None]:
        if not self.in_flight.insert(key):
            raise CsiError(Code.ABORTED, busy_message)
        try:
            yield
        finally:
            self.in_flight.delete(key)

    def _ownership_tags(self, resource_name: str) -> dict[str, str]:
        cluster_id = self.options.kubernetes_cluster_id
        if not cluster_id:
            return {}
        return {
            RESOURCE_LIFECYCLE_TAG_PREFIX + cluster_id: RESOURCE_LIFECYCLE_OWNED,
            NAME_TAG: f"{cluster_id}-dynamic-{resource_name}",
        }

    def _class_tags(self, specs: list[str], props: Mapping[str, str]) -> dict[str, str]:
        warn = self.options.warn_on_invalid_tag
        try:
            tags = _evaluate_tags(specs, props, warn)
        except ValueError as err:
            raise CsiError(Code.INVALID_ARGUMENT, f"Error interpolating the tag value: {err}") from err
        try:
            _validate_extra_tags(tags, warn)
        except ValueError as err:
            raise CsiError(Code.INVALID_ARGUMENT, f"Invalid tag value: {err}") from err
        return tags

    def create_volume(
        self,
        name: str,
        capacity_range: CapacityRange | None = None,
        volume_capabilities: Sequence[VolumeCapability] = (),
        parameters: Mapping[str, str] | None = None,
        content_snapshot_id: str | None = None,
        accessibility_requirements: TopologyRequirement | None = None,
    ) -> Volume:
        """Create a volume, or return the existing one for a repeated request."""
        logger.debug("CreateVolume: called name=%s", name)
        if not name:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume name not provided")
        if not volume_capabilities:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume capabilities not provided")
        if not is_valid_volume_capabilities(volume_capabilities):
            raise _unsupported_modes_error(volume_capabilities)
        size_bytes = get_vol_size_bytes(capacity_range)

        with self._track(name, f"Create volume request for {name} is already in progress"):
            options = DiskOptions(
                capacity_bytes=size_bytes,
                tags={VOLUME_NAME_TAG_KEY: name, AWS_EBS_DRIVER_TAG_KEY: IS_MANAGED_BY_DRIVER},
            )
            tag_specs: list[str] = []
            props = {"PVCName": "", "PVCNamespace": "", "PVName": ""}
            block_size = ""

            for key, value in (parameters or {}).items():
                lowered = key.lower()
                if lowered == "fstype":
                    logger.info('"fstype" is deprecated, please use "csi.storage.k8s.io/fstype" instead')
                elif lowered == VOLUME_TYPE_KEY:
                    options.volume_type = value
                elif lowered in (IOPS_PER_GB_KEY, IOPS_KEY, THROUGHPUT_KEY, BLOCK_SIZE_KEY):
                    try:
                        number = _parse_int(value)
                    except ValueError as err:
                        label = {IOPS_PER_GB_KEY: "iopsPerGB", IOPS_KEY: "iops", THROUGHPUT_KEY: "throughput"}
                        if lowered == BLOCK_SIZE_KEY:
                            message = f"Could not parse blockSize ({value}): {err}"
                        else:
                            message = f"Could not parse invalid {label[lowered]}: {err}"
                        raise CsiError(Code.INVALID_ARGUMENT, message) from err
                    if lowered == IOPS_PER_GB_KEY:
                        options.iops_per_gb = number
                    elif lowered == IOPS_KEY:
                        options.iops = number
                    elif lowered == THROUGHPUT_KEY:
                        options.throughput = number
                    else:
                        block_size = value
                elif lowered == ALLOW_AUTO_IOPS_PER_GB_INCREASE_KEY:
                    options.allow_iops_per_gb_increase = value == "true"
                elif lowered == ENCRYPTED_KEY:
                    options.encrypted = options.encrypted or value == "true"
                elif lowered == KMS_KEY_ID_KEY:
                    options.kms_key_id = value
                elif lowered == PVC_NAME_KEY:
                    options.tags[PVC_NAME_TAG] = value
                    props["PVCName"] = value
                elif lowered == PVC_NAMESPACE_KEY:
                    options.tags[PVC_NAMESPACE_TAG] = value
                    props["PVCNamespace"] = value
                elif lowered == PV_NAME_KEY:
                    options.tags[PV_NAME_TAG] = value
                    props["PVName"] = value
                elif lowered == BLOCK_EXPRESS_KEY:
                    options.block_express = options.block_express or value == "true"
                elif key.startswith(TAG_KEY_PREFIX):
                    tag_specs.append(value)
                else:
                    raise CsiError(Code.INVALID_ARGUMENT, f"Invalid parameter key {key} for CreateVolume")

            if block_size:
                for cap in volume_capabilities:
                    if cap.block:
                        raise CsiError(Code.INVALID_ARGUMENT, "Cannot use block size with block volume")
                    if not cap.mount:
                        raise CsiError(
                            Code.INVALID_ARGUMENT, "CreateVolume: mount is nil within volume capability"
                        )
                    if cap.fs_type in BLOCK_SIZE_EXCLUDED_FS_TYPES:
                        raise CsiError(
                            Code.INVALID_ARGUMENT, f"Cannot use block size with fstype {cap.fs_type}"
                        )

            if options.volume_type == VOLUME_TYPE_IO1 and options.iops_per_gb == 0:
                raise CsiError(
                    Code.INVALID_ARGUMENT, "The parameter IOPSPerGB must be specified for io1 volumes"
                )
            if options.block_express and options.volume_type != VOLUME_TYPE_IO2:
                raise CsiError(Code.INVALID_ARGUMENT, "Block Express is only supported on io2 volumes")

            options.snapshot_id = content_snapshot_id or ""
            options.availability_zone = pick_availability_zone(accessibility_requirements)
            options.outpost_arn = get_outpost_arn(accessibility_requirements)

            options.tags.update(self._ownership_tags(name))
            if self.options.kubernetes_cluster_id:
                options.tags[KUBERNETES_CLUSTER_TAG] = self.options.kubernetes_cluster_id
            options.tags.update(self.options.extra_tags or {})
            options.tags.update(self._class_tags(tag_specs, props))

            try:
                disk = self.cloud.create_disk(name, options)
            except CloudError as err:
                code = Code.INTERNAL
                if isinstance(err, NotFoundError):
                    code = Code.NOT_FOUND
                if isinstance(err, IdempotentParameterMismatchError):
                    code = Code.ALREADY_EXISTS
                raise CsiError(code, f"Could not create volume {name!r}: {err}") from err
            return _volume_from_disk(disk, block_size)

    def delete_volume(self, volume_id: str) -> None:
        """Delete a volume; a volume that no longer exists counts as deleted."""
        logger.debug("DeleteVolume: called volume_id=%s", volume_id)
        if not volume_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume ID not provided")
        with self._track(volume_id, VOLUME_OPERATION_ALREADY_EXISTS_ERROR_MSG.format(volume_id)):
            try:
                self.cloud.delete_disk(volume_id)
            except NotFoundError:
                logger.debug("DeleteVolume: volume not found, returning with success")
            except CloudError as err:
                raise CsiError(Code.INTERNAL, f"Could not delete volume ID {volume_id!r}: {err}") from err

    def controller_publish_volume(
        self, volume_id: str, node_id: str, volume_capability: VolumeCapability | None
    ) -> dict[str, str]:
        """Attach a volume to a node and return the publish context with the device path."""
        logger.debug("ControllerPublishVolume: called volume_id=%s node_id=%s", volume_id, node_id)
        if not volume_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume ID not provided")
        if not node_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Node ID not provided")
        if volume_capability is None:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume capability not provided")
        if not is_valid_volume_capabilities([volume_capability]):
            raise _unsupported_modes_error([volume_capability])

        if not self.cloud.is_exist_instance(node_id):
            raise CsiError(Code.NOT_FOUND, f"Instance {node_id!r} not found")
        try:
            disk = self.cloud.get_disk_by_id(volume_id)
        except NotFoundError as err:
            raise CsiError(Code.NOT_FOUND, "Volume not found") from err
        except CloudError as err:
            raise CsiError(Code.INTERNAL, f"Could not get volume with ID {volume_id!r}: {err}") from err

        try:
            device_path = self.cloud.attach_disk(volume_id, node_id)
        except VolumeInUseError as err:
            raise CsiError(Code.FAILED_PRECONDITION, ",".join(disk.attachments)) from err
        except CloudError as err:
            raise CsiError(
                Code.INTERNAL, f"Could not attach volume {volume_id!r} to node {node_id!r}: {err}"
            ) from err
        logger.debug(
            "ControllerPublishVolume: attached volume_id=%s node_id=%s device_path=%s",
            volume_id,
            node_id,
            device_path,
        )
        return {DEVICE_PATH_KEY: device_path}

    def controller_unpublish_volume(self, volume_id: str, node_id: str) -> None:
        """Detach a volume from a node; a missing attachment counts as detached."""
        logger.debug("ControllerUnpublishVolume: called volume_id=%s node_id=%s", volume_id, node_id)
        if not volume_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume ID not provided")
        if not node_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Node ID not provided")
        try:
            self.cloud.detach_disk(volume_id, node_id)
        except NotFoundError:
            return
        except CloudError as err:
            raise CsiError(
                Code.INTERNAL, f"Could not detach volume {volume_id!r} from node {node_id!r}: {err}"
            ) from err
        logger.debug("ControllerUnpublishVolume: detached volume_id=%s node_id=%s", volume_id, node_id)

    def controller_get_capabilities(self) -> list[str]:
        """The controller RPCs this service supports."""
        return list(CONTROLLER_CAPABILITIES)

    def get_capacity(self) -> None:
        raise CsiError(Code.UNIMPLEMENTED, "")

    def list_volumes(self) -> None:
        raise CsiError(Code.UNIMPLEMENTED, "")

    def controller_get_volume(self) -> None:
        raise CsiError(Code.UNIMPLEMENTED, "")

    def validate_volume_capabilities(
        self, volume_id: str, volume_capabilities: Sequence[VolumeCapability]
    ) -> list[VolumeCapability] | None:
        """Return the capabilities if all are supported, or None if any is not."""
        if not volume_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume ID not provided")
        if not volume_capabilities:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume capabilities not provided")
        try:
            self.cloud.get_disk_by_id(volume_id)
        except NotFoundError as err:
            raise CsiError(Code.NOT_FOUND, "Volume not found") from err
        except CloudError as err:
            raise CsiError(Code.INTERNAL, f"Could not get volume with ID {volume_id!r}: {err}") from err
        if is_valid_volume_capabilities(volume_capabilities):
            return list(volume_capabilities)
        return None

    def controller_expand_volume(
        self,
        volume_id: str,
        capacity_range: CapacityRange | None,
        volume_capability: VolumeCapability | None = None,
    ) -> tuple[int, bool]:
        """Resize a volume; return its new size in bytes and whether the node must expand it."""
        if not volume_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Volume ID not provided")
        if capacity_range is None:
            raise CsiError(Code.INVALID_ARGUMENT, "Capacity range not provided")
        new_size = _round_up_bytes(capacity_range.required_bytes)
        if 0 < capacity_range.limit_bytes < new_size:
            raise CsiError(Code.INVALID_ARGUMENT, "After round-up, volume size exceeds the limit specified")
        try:
            actual_gib = self.cloud.resize_disk(volume_id, new_size)
        except CloudError as err:
            raise CsiError(Code.INTERNAL, f"Could not resize volume {volume_id!r}: {err}") from err
        node_expansion_required = not (volume_capability is not None and volume_capability.block)
        return actual_gib * GIB, node_expansion_required

    def create_snapshot(
        self, name: str, source_volume_id: str, parameters: Mapping[str, str] | None = None
    ) -> SnapshotInfo:
        """Create a snapshot of a volume, or return the existing one of the same name."""
        logger.debug("CreateSnapshot: called name=%s volume=%s", name, source_volume_id)
        if not name:
            raise CsiError(Code.INVALID_ARGUMENT, "Snapshot name not provided")
        if not source_volume_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Snapshot volume source ID not provided")

        with self._track(name, VOLUME_OPERATION_ALREADY_EXISTS_ERROR_MSG.format(name)):
            try:
                existing = self.cloud.get_snapshot_by_name(name)
            except NotFoundError:
                existing = None
            if existing is not None:
                if existing.source_volume_id != source_volume_id:
                    raise CsiError(
                        Code.ALREADY_EXISTS,
                        f"Snapshot {name} already exists for different volume ({existing.source_volume_id})",
                    )
                logger.debug("Snapshot of volume already exists; nothing to do name=%s", name)
                return SnapshotInfo.from_snapshot(existing)

            tags = {SNAPSHOT_NAME_TAG_KEY: name, AWS_EBS_DRIVER_TAG_KEY: IS_MANAGED_BY_DRIVER}
            tag_specs: list[str] = []
            fsr_zones: list[str] = []
            props = {"VolumeSnapshotName": "", "VolumeSnapshotNamespace": "", "VolumeSnapshotContentName": ""}
            for key, value in (parameters or {}).items():
                lowered = key.lower()
                if lowered == VOLUME_SNAPSHOT_NAME_KEY:
                    props["VolumeSnapshotName"] = value
                elif lowered == VOLUME_SNAPSHOT_NAMESPACE_KEY:
                    props["VolumeSnapshotNamespace"] = value
                elif lowered == VOLUME_SNAPSHOT_CONTENT_NAME_KEY:
                    props["VolumeSnapshotContentName"] = value
                elif lowered == FAST_SNAPSHOT_RESTORE_AVAILABILITY_ZONES:
                    fsr_zones = value.replace(" ", "").split(",")
                elif key.startswith(TAG_KEY_PREFIX):
                    tag_specs.append(value)
                else:
                    raise CsiError(Code.INVALID_ARGUMENT, f"Invalid parameter key {key} for CreateSnapshot")

            class_tags = self._class_tags(tag_specs, props)
            tags.update(self._ownership_tags(name))
            tags.update(self.options.extra_tags or {})
            tags.update(class_tags)

            if fsr_zones:
                try:
                    zones = self.cloud.availability_zones()
                except CloudError as err:
                    logger.error("failed to get availability zones: %s", err)
                else:
                    for zone in fsr_zones:
                        if zone not in zones:
                            raise CsiError(
                                Code.INVALID_ARGUMENT,
                                f"Availability zone {zone} is not supported for fast snapshot restore",
                            )

            try:
                snapshot = self.cloud.create_snapshot(source_volume_id, SnapshotOptions(tags=tags))
            except CloudError as err:
                raise CsiError(Code.INTERNAL, f"Could not create snapshot {name!r}: {err}") from err

            if fsr_zones:
                try:
                    self.cloud.enable_fast_snapshot_restores(fsr_zones, snapshot.snapshot_id)
                except CloudError as err:
                    try:
                        self.cloud.delete_snapshot(snapshot.snapshot_id)
                    except CloudError as delete_err:
                        raise CsiError(
                            Code.INTERNAL, f"Could not delete snapshot ID {name!r}: {delete_err}"
                        ) from delete_err
                    raise CsiError(
                        Code.INTERNAL,
                        f"Failed to create Fast Snapshot Restores for snapshot ID {name!r}: {err}",
                    ) from err
            return SnapshotInfo.from_snapshot(snapshot)

    def delete_snapshot(self, snapshot_id: str) -> None:
        """Delete a snapshot; a snapshot that no longer exists counts as deleted."""
        logger.debug("DeleteSnapshot: called snapshot_id=%s", snapshot_id)
        if not snapshot_id:
            raise CsiError(Code.INVALID_ARGUMENT, "Snapshot ID not provided")
        with self._track(snapshot_id, f"DeleteSnapshot for Snapshot {snapshot_id} is already in progress"):
            try:
                self.cloud.delete_snapshot(snapshot_id)
            except NotFoundError:
                logger.debug("DeleteSnapshot: snapshot not found, returning with success")
            except CloudError as err:
                raise CsiError(
                    Code.INTERNAL, f"Could not delete snapshot ID {snapshot_id!r}: {err}"
                ) from err

    def list_snapshots(
        self,
        snapshot_id: str = "",
        source_volume_id: str = "",
        max_entries: int = 0,
        starting_token: str = "",
    ) -> tuple[list[SnapshotInfo], str]:
        """Return snapshot entries and the token for the next page ('' when none)."""
        if snapshot_id:
            try:
                snapshot = self.cloud.get_snapshot_by_id(snapshot_id)
            except NotFoundError:
                logger.debug("ListSnapshots: snapshot not found, returning with success")
                return [], ""
            except CloudError as err:
                raise CsiError(Code.INTERNAL, f"Could not get snapshot ID {snapshot_id!r}: {err}") from err
            return [SnapshotInfo.from_snapshot(snapshot)], ""

        try:
            result = self.cloud.list_snapshots(source_volume_id, int(max_entries), starting_token)
        except NotFoundError:
            logger.debug("ListSnapshots: snapshot not found, returning with success")
            return [], ""
        except InvalidMaxResultsError as err:
            raise CsiError(
                Code.INVALID_ARGUMENT, f"Error mapping MaxEntries to AWS MaxResults: {err}"
            ) from err
        except CloudError as err:
            raise CsiError(Code.INTERNAL, f"Could not list snapshots: {err}") from err
        return [SnapshotInfo.from_snapshot(s) for s in result.snapshots], result.next_token