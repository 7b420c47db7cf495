from __future__ import annotations

import itertools
from datetime import datetime, timezone

from txc_stop_index.core import EPOCH
from txc_stop_index.stages.build.versions import VersionKey, VersionRegistry

T1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_higher_revision_wins_regardless_of_timestamp() -> None:
    for older_ts, newer_ts in ((T1, T2), (T2, T1)):
        reg = VersionRegistry()
        assert reg.offer("S1", VersionKey(2, older_ts))
        assert reg.offer("S1", VersionKey(3, newer_ts))
        assert reg.current("S1") == VersionKey(3, newer_ts)

        reg = VersionRegistry()
        assert reg.offer("S1", VersionKey(3, newer_ts))
        assert not reg.offer("S1", VersionKey(2, older_ts))
        assert reg.current("S1") == VersionKey(3, newer_ts)


def test_equal_revision_later_timestamp_wins() -> None:
    reg = VersionRegistry()
    assert reg.offer("S1", VersionKey(5, T1))
    assert reg.offer("S1", VersionKey(5, T2))
    assert not reg.offer("S1", VersionKey(5, T1))
    assert reg.current("S1") == VersionKey(5, T2)


def test_identical_key_does_not_supersede() -> None:
    reg = VersionRegistry()
    assert reg.offer("S1", VersionKey(1, T1))
    assert not reg.offer("S1", VersionKey(1, T1))


def test_codes_are_independent() -> None:
    reg = VersionRegistry()
    assert reg.offer("S1", VersionKey(9, T2))
    assert reg.offer("S2", VersionKey(0, EPOCH))
    assert len(reg) == 2


def test_final_version_is_order_independent() -> None:
    candidates = [
        VersionKey(1, T2),
        VersionKey(3, T1),
        VersionKey(3, T2),
        VersionKey(2, T2),
        VersionKey(0, EPOCH),
    ]
    finals = set()
    for perm in itertools.permutations(candidates):
        reg = VersionRegistry()
        for key in perm:
            reg.offer("S1", key)
        finals.add(reg.current("S1"))
    assert finals == {VersionKey(3, T2)}
