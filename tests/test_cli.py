from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Iterator

import pytest

from txc_stop_index.cli import main
from txc_stop_index.core import load_settings

DOC = (
    '<TransXChange xmlns="http://www.transxchange.org.uk/">'
    "<Services><Service><ServiceCode>S1</ServiceCode>"
    "<Lines><Line><LineName>7</LineName></Line></Lines>"
    "<OperatingPeriod><StartDate>2025-01-01</StartDate><EndDate>2025-12-31</EndDate></OperatingPeriod>"
    "</Service></Services>"
    "<JourneyPatternSections><JourneyPatternSection>"
    "<JourneyPatternTimingLink><From><StopPointRef>1800AAA1</StopPointRef></From>"
    "<To><StopPointRef>Z9</StopPointRef></To></JourneyPatternTimingLink>"
    "</JourneyPatternSection></JourneyPatternSections>"
    "</TransXChange>"
)


@pytest.fixture
def data_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    root = tmp_path / "data"
    (root / "downloads").mkdir(parents=True)
    with zipfile.ZipFile(root / "downloads" / "bods.zip", "w") as zf:
        zf.writestr("svc.xml", DOC)

    monkeypatch.setenv("TXC_STOP_INDEX_DATA_ROOT", str(root))
    monkeypatch.setenv("TXC_STOP_INDEX_RUN_ROOT", str(tmp_path / "_runs"))
    load_settings.cache_clear()
    yield root
    load_settings.cache_clear()


def test_run_builds_and_shards(data_root: Path) -> None:
    assert main(["run", "--today", "2025-06-15", "--shard-prefix-len", "2"]) == 0

    out = json.loads((data_root / "out" / "stop_to_services.json").read_text(encoding="utf-8"))
    assert sorted(out) == ["1800AAA1", "Z9"]
    assert out["Z9"][0]["ref"] == "7"

    shards = data_root / "out" / "shards"
    assert sorted(p.name for p in shards.iterdir()) == ["18.json", "Z9.json"]


def test_build_respects_reference_date(data_root: Path) -> None:
    assert main(["build", "--today", "2026-01-01"]) == 0
    out = json.loads((data_root / "out" / "stop_to_services.json").read_text(encoding="utf-8"))
    assert out == {}


def test_out_dir_override(data_root: Path, tmp_path: Path) -> None:
    elsewhere = tmp_path / "elsewhere"
    assert main(["build", "--today", "2025-06-15", "--out-dir", str(elsewhere)]) == 0
    assert (elsewhere / "stop_to_services.json").is_file()
    assert (elsewhere / "build_metadata.json").is_file()


def test_shard_without_build_fails(data_root: Path) -> None:
    assert main(["shard"]) == 1


def test_missing_downloads_fails(data_root: Path, tmp_path: Path) -> None:
    assert main(["build", "--downloads-dir", str(tmp_path / "nowhere")]) == 1


def test_rejects_bad_today(data_root: Path) -> None:
    with pytest.raises(SystemExit):
        main(["build", "--today", "15/06/2025"])


@pytest.mark.parametrize("width", ["0", "-2", "four"])
def test_rejects_bad_shard_prefix_len(data_root: Path, width: str) -> None:
    with pytest.raises(SystemExit):
        main(["shard", "--shard-prefix-len", width])
