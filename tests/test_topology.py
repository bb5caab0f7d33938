import pytest

from ebscsi.topology import (
    build_outpost_arn,
    get_outpost_arn,
    parse_arn,
    pick_availability_zone,
)
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

EXP_ZONE = "us-west-2b"
RAW_OUTPOST_ARN = "arn:aws:outposts:us-west-2:111111111111:outpost/op-0aaa000a0aaaa00a0"
STRIPPED = parse_arn(RAW_OUTPOST_ARN.replace("outpost/", ""))


def _outpost_segments():
    return {
        TOPOLOGY_KEY: EXP_ZONE,
        AWS_ACCOUNT_ID_KEY: STRIPPED.account_id,
        AWS_OUTPOST_ID_KEY: STRIPPED.resource,
        AWS_REGION_KEY: STRIPPED.region,
        AWS_PARTITION_KEY: STRIPPED.partition,
    }


@pytest.mark.parametrize(
    "requirement, expected",
    [
        (
            TopologyRequirement(
                requisite=[Topology({TOPOLOGY_KEY: ""})],
                preferred=[Topology({TOPOLOGY_KEY: EXP_ZONE, WELL_KNOWN_TOPOLOGY_KEY: "foobar"})],
            ),
            "foobar",
        ),
        (
            TopologyRequirement(
                requisite=[Topology({TOPOLOGY_KEY: EXP_ZONE, WELL_KNOWN_TOPOLOGY_KEY: "foobar"})]
            ),
            "foobar",
        ),
        (
            TopologyRequirement(
                requisite=[Topology({TOPOLOGY_KEY: ""})],
                preferred=[Topology({TOPOLOGY_KEY: EXP_ZONE})],
            ),
            EXP_ZONE,
        ),
        (TopologyRequirement(requisite=[Topology({TOPOLOGY_KEY: EXP_ZONE})]), EXP_ZONE),
        (TopologyRequirement(preferred=[Topology()], requisite=[Topology()]), ""),
        (None, ""),
    ],
    ids=[
        "well-known from preferred",
        "well-known from requisite",
        "pick from preferred",
        "pick from requisite",
        "empty topology",
        "nil requirement",
    ],
)
def test_pick_availability_zone(requirement, expected):
    assert pick_availability_zone(requirement) == expected


@pytest.mark.parametrize(
    "requirement, expected",
    [
        (
            TopologyRequirement(
                requisite=[Topology({TOPOLOGY_KEY: EXP_ZONE})],
                preferred=[Topology(_outpost_segments())],
            ),
            RAW_OUTPOST_ARN,
        ),
        (TopologyRequirement(requisite=[Topology(_outpost_segments())]), RAW_OUTPOST_ARN),
        (TopologyRequirement(preferred=[Topology()], requisite=[Topology()]), ""),
        (None, ""),
    ],
    ids=["preferred", "requisite", "empty topology", "nil requirement"],
)
def test_get_outpost_arn(requirement, expected):
    assert get_outpost_arn(requirement) == expected


@pytest.mark.parametrize(
    "partition, region, account_id, outpost_id, expected",
    [
        ("aws", "us-west-2", "111111111111", "op-0aaa000a0aaaa00a0", RAW_OUTPOST_ARN),
        ("", "us-west-2", "111111111111", "op-0aaa000a0aaaa00a0", ""),
        ("aws", "", "111111111111", "op-0aaa000a0aaaa00a0", ""),
        ("aws", "us-west-2", "", "op-0aaa000a0aaaa00a0", ""),
        ("aws", "us-west-2", "111111111111", "", ""),
    ],
    ids=["all present", "no partition", "no region", "no account id", "no outpost id"],
)
def test_build_outpost_arn(partition, region, account_id, outpost_id, expected):
    segments = {
        AWS_REGION_KEY: region,
        AWS_PARTITION_KEY: partition,
        AWS_ACCOUNT_ID_KEY: account_id,
        AWS_OUTPOST_ID_KEY: outpost_id,
    }
    assert build_outpost_arn(segments) == expected


def test_build_outpost_arn_missing_keys():
    assert build_outpost_arn({}) == ""


def test_parse_arn_fields():
    arn = parse_arn(RAW_OUTPOST_ARN)
    assert arn.partition == "aws"
    assert arn.service == "outposts"
    assert arn.region == "us-west-2"
    assert arn.account_id == "111111111111"
    assert arn.resource == "outpost/op-0aaa000a0aaaa00a0"


def test_parse_arn_resource_keeps_colons():
    arn = parse_arn("arn:aws:svc:r:1:a:b:c")
    assert arn.resource == "a:b:c"


def test_parse_arn_round_trip():
    assert str(parse_arn(RAW_OUTPOST_ARN)) == RAW_OUTPOST_ARN


def test_parse_arn_invalid_prefix():
    with pytest.raises(ValueError, match="invalid prefix"):
        parse_arn("aws:outposts:us-west-2:111111111111:outpost/x")


def test_parse_arn_not_enough_sections():
    with pytest.raises(ValueError, match="not enough sections"):
        parse_arn("arn:aws:outposts:us-west-2")


def test_parse_arn_empty():
    with pytest.raises(ValueError):
        parse_arn("")