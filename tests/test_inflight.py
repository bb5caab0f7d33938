from concurrent.futures import ThreadPoolExecutor

import pytest

from ebscsi.inflight import InFlight


@pytest.mark.parametrize(
    "requests",
    [
        pytest.param([("random-vol-name", True, False)], id="success normal"),
        pytest.param(
            [
                ("random-vol-foobar", True, False),
                ("random-vol-name-foobar", True, False),
            ],
            id="success adding request with different volumeId",
        ),
        pytest.param(
            [
                ("random-vol-name-foobar", True, False),
                ("random-vol-name-foobar", False, False),
            ],
            id="failed adding request with same volumeId",
        ),
        pytest.param(
            [
                ("random-vol-name", True, False),
                ("random-vol-name", False, True),
                ("random-vol-name", True, False),
            ],
            id="success add, delete, add copy",
        ),
    ],
)
def test_inflight_cases(requests):
    db = InFlight()
    for volume_id, expected, delete in requests:
        if delete:
            db.delete(volume_id)
            result = False
        else:
            result = db.insert(volume_id)
        assert result == expected


def test_contains_follows_insert_and_delete():
    db = InFlight()
    assert "vol-a" not in db
    assert db.insert("vol-a") is True
    assert "vol-a" in db
    db.delete("vol-a")
    assert "vol-a" not in db


def test_delete_missing_key_is_harmless():
    db = InFlight()
    db.delete("never-inserted")
    assert db.insert("never-inserted") is True


def test_concurrent_inserts_admit_exactly_one():
    db = InFlight()
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: db.insert("shared-key"), range(16)))

    assert results.count(True) == 1
    assert results.count(False) == 15
    assert "shared-key" in db
    assert db.insert("shared-key") is False