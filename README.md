# ebscsi

The request-handling core of a Container Storage Interface (CSI) driver for
Elastic Block Store volumes. It checks and interprets CSI requests and turns
them into calls on a cloud backend that you supply.

- `ebscsi.controller.ControllerService` handles volume creation, deletion,
  attach and detach, expansion, and snapshot creation, deletion and listing.
  It checks every argument, builds the volume and snapshot tags, and reports
  failures as `CsiError` carrying a CSI status `Code`.
- `ebscsi.identity` answers plugin info, capability and probe queries.
- `ebscsi.options` holds `DriverOptions`, the operating `Mode` and the
  `with_*` option helpers.
- `ebscsi.topology` picks availability zones and builds or parses Outpost
  ARNs from topology segments.
- `ebscsi.inflight.InFlight` makes sure only one operation runs at a time for
  a given volume or snapshot key.

## Installation

```
pip install .
```

## Configuring the driver

```python
from ebscsi.options import (
    Mode,
    build_options,
    with_extra_tags,
    with_kubernetes_cluster_id,
    with_mode,
)

options = build_options(
    with_mode(Mode.CONTROLLER),
    with_kubernetes_cluster_id("my-cluster"),
    with_extra_tags({"team": "storage"}),
)
```

## Creating a volume

`ControllerService` calls a cloud backend object for all disk and snapshot
work, and your code provides that object. Backend failures are expected as
the exceptions in `ebscsi.types`: `NotFoundError`,
`IdempotentParameterMismatchError`, `VolumeInUseError` and
`InvalidMaxResultsError`.

```python
from ebscsi.controller import ControllerService
from ebscsi.types import AccessMode, CapacityRange, CsiError, VolumeCapability

service = ControllerService(cloud=my_cloud, options=options)

try:
    volume = service.create_volume(
        name="pvc-1234",
        capacity_range=CapacityRange(required_bytes=5 * 1024**3),
        volume_capabilities=[VolumeCapability(access_mode=AccessMode.SINGLE_NODE_WRITER)],
        parameters={"type": "gp3"},
        content_snapshot_id=None,
        accessibility_requirements=None,
    )
except CsiError as err:
    print(err.code, err.message)
```

## Topology helpers

```python
from ebscsi.topology import build_outpost_arn, parse_arn

arn = build_outpost_arn({
    "topology.ebs.csi.aws.com/partition": "aws",
    "topology.ebs.csi.aws.com/region": "us-west-2",
    "topology.ebs.csi.aws.com/account-id": "111111111111",
    "topology.ebs.csi.aws.com/outpost-id": "op-0aaa000a0aaaa00a0",
})
# "arn:aws:outposts:us-west-2:111111111111:outpost/op-0aaa000a0aaaa00a0"
```

## Running the tests

```
pip install .[test]
pytest
```