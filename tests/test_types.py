from datetime import datetime, timezone

import pytest

from ebscsi.types import (
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


def test_code_values_are_grpc_codes():
    assert Code.INVALID_ARGUMENT == 3
    assert Code(Code.ABORTED.value) is Code.ABORTED


@pytest.mark.parametrize(
    "value, expected",
    [(3, "InvalidArgument"), (0, "OK"), (5, "NotFound")],
)
def test_code_string_names(value, expected):
    assert str(Code(value)) == expected


def test_csi_error_carries_code_and_message():
    err = CsiError(Code.NOT_FOUND, "Volume not found")
    assert err.code is Code.NOT_FOUND
    assert err.message == "Volume not found"
    assert str(err) == "rpc error: code = NotFound desc = Volume not found"


def test_csi_error_accepts_int_code():
    err = CsiError(13, "boom")
    assert err.code is Code.INTERNAL
    with pytest.raises(CsiError) as info:
        raise err
    assert info.value.code is Code.INTERNAL


@pytest.mark.parametrize(
    "cls",
    [NotFoundError, IdempotentParameterMismatchError, VolumeInUseError, InvalidMaxResultsError],
)
def test_cloud_errors_are_cloud_errors(cls):
    err = cls("detail")
    assert str(err) == "detail"
    assert isinstance(err, CloudError)


def test_cloud_error_default_message():
    assert str(NotFoundError()) == NotFoundError.default_message
    assert str(VolumeInUseError()) != str(NotFoundError())


def test_access_mode_value():
    assert AccessMode.SINGLE_NODE_WRITER == 1
    assert AccessMode(0) is AccessMode.UNKNOWN


def test_volume_capability_mount_factory():
    cap = VolumeCapability.for_mount("ext4")
    assert cap.mount is True
    assert cap.block is False
    assert cap.fs_type == "ext4"
    assert cap.access_mode is AccessMode.SINGLE_NODE_WRITER


def test_volume_capability_block_factory():
    cap = VolumeCapability.for_block(AccessMode.MULTI_NODE_SINGLE_WRITER)
    assert cap.block is True
    assert cap.mount is False
    assert cap.access_mode is AccessMode.MULTI_NODE_SINGLE_WRITER


def test_volume_capability_without_access_type():
    cap = VolumeCapability(access_mode=AccessMode.SINGLE_NODE_WRITER)
    assert (cap.block, cap.mount) == (False, False)


def test_volume_capability_rejects_block_and_mount():
    with pytest.raises(ValueError):
        VolumeCapability(block=True, mount=True)


def test_volume_capability_rejects_fs_type_without_mount():
    with pytest.raises(ValueError):
        VolumeCapability(block=True, fs_type="xfs")


def test_volume_capability_coerces_mode():
    cap = VolumeCapability(access_mode=1, mount=True)
    assert cap.access_mode is AccessMode.SINGLE_NODE_WRITER


def test_mutable_defaults_are_independent():
    first, second = DiskOptions(), DiskOptions()
    first.tags["a"] = "b"
    assert second.tags == {}
    t1, t2 = TopologyRequirement(), TopologyRequirement()
    t1.preferred.append(Topology({TOPOLOGY_KEY: "zone-a"}))
    assert t2.preferred == []


def test_defaults_are_empty():
    assert CapacityRange() == CapacityRange(required_bytes=0, limit_bytes=0)
    assert Disk().attachments == []
    assert SnapshotOptions().tags == {}
    assert ListSnapshotsResult() == ListSnapshotsResult(snapshots=[], next_token="")
    assert Volume().volume_context == {}


def test_topology_equality():
    assert Topology({TOPOLOGY_KEY: "zone-a"}) == Topology({TOPOLOGY_KEY: "zone-a"})
    assert Topology({TOPOLOGY_KEY: "zone-a"}) != Topology({TOPOLOGY_KEY: "zone-b"})


def test_snapshot_info_from_snapshot():
    created = datetime(2023, 3, 1, tzinfo=timezone.utc)
    snap = Snapshot(
        snapshot_id="snapshot-1",
        source_volume_id="test-vol",
        size=1,
        creation_time=created,
        ready_to_use=True,
    )
    info = SnapshotInfo.from_snapshot(snap)
    assert info == SnapshotInfo(
        snapshot_id="snapshot-1",
        source_volume_id="test-vol",
        size_bytes=1,
        creation_time=created,
        ready_to_use=True,
    )


def test_snapshot_creation_time_defaults_to_now():
    before = datetime.now(timezone.utc)
    snap = Snapshot()
    after = datetime.now(timezone.utc)
    assert before <= snap.creation_time <= after