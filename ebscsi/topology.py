"""Choosing a zone and an outpost from topology requirements."""

from __future__ import annotations

from typing import Mapping, NamedTuple

from ebscsi.types import (
    AWS_ACCOUNT_ID_KEY,
    AWS_OUTPOST_ID_KEY,
    AWS_PARTITION_KEY,
    AWS_REGION_KEY,
    TOPOLOGY_KEY,
    WELL_KNOWN_TOPOLOGY_KEY,
    Topology,
    TopologyRequirement,
)

_ARN_PREFIX = "arn:"
_ARN_SECTIONS = 6


class _Arn(NamedTuple):
    partition: str
    service: str
    region: str
    account_id: str
    resource: str

    def __str__(self) -> str:
        return ":".join(
            ("arn", self.partition, self.service, self.region, self.account_id, self.resource)
        )


def parse_arn(text: str) -> _Arn:
    """Split an ARN into partition, service, region, account id and resource.

    Raises ValueError when the prefix is wrong or sections are missing.
    """
    if not text.startswith(_ARN_PREFIX):
        raise ValueError("arn: invalid prefix")
    sections = text.split(":", _ARN_SECTIONS - 1)
    if len(sections) != _ARN_SECTIONS:
        raise ValueError("arn: not enough sections")
    _, partition, service, region, account_id, resource = sections
    return _Arn(partition, service, region, account_id, resource)


def _topologies(requirement: TopologyRequirement) -> list[Topology]:
    return [*requirement.preferred, *requirement.requisite]


def pick_availability_zone(requirement: TopologyRequirement | None) -> str:
    """Return the first zone named by the preferred, then requisite, topologies.

    The well-known zone key wins over the driver's own key within a topology.
    An empty string means no zone was found.
    """
    if requirement is None:
        return ""
    for topology in _topologies(requirement):
        segments = topology.segments
        if WELL_KNOWN_TOPOLOGY_KEY in segments:
            return segments[WELL_KNOWN_TOPOLOGY_KEY]
        if TOPOLOGY_KEY in segments:
            return segments[TOPOLOGY_KEY]
    return ""


def get_outpost_arn(requirement: TopologyRequirement | None) -> str:
    """Return the outpost ARN of the first topology that names an outpost, or ''."""
    if requirement is None:
        return ""
    for topology in _topologies(requirement):
        if AWS_OUTPOST_ID_KEY in topology.segments:
            return build_outpost_arn(topology.segments)
    return ""


def build_outpost_arn(segments: Mapping[str, str]) -> str:
    """Build an outpost ARN from topology segments; '' if any part is missing."""
    partition = segments.get(AWS_PARTITION_KEY, "")
    region = segments.get(AWS_REGION_KEY, "")
    outpost_id = segments.get(AWS_OUTPOST_ID_KEY, "")
    account_id = segments.get(AWS_ACCOUNT_ID_KEY, "")
    if not (partition and region and outpost_id and account_id):
        return ""
    return f"arn:{partition}:outposts:{region}:{account_id}:outpost/{outpost_id}"