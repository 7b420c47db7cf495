from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from txc_stop_index.core import DataLayout, InputDataError
from txc_stop_index.stages.build.runner import run_build

TODAY = date(2025, 6, 15)


@pytest.fixture
def layout(tmp_path: Path) -> DataLayout:
    return DataLayout(root=tmp_path / "data")


def _seed(layout: DataLayout, make_txc, make_service, make_zip) -> None:
    dl = layout.downloads_root()
    ops = '<Operator id="O1"><NationalOperatorCode>ABCD</NationalOperatorCode><TradingName>Acme</TradingName></Operator>'
    make_zip(
        dl / "2024" / "first.zip",
        {
            "a.xml": make_txc(
                services=[make_service("S1", line="10", revision=1, operator_ref="O1")],
                stops=["1800AAA1", "1800AAA2"],
                operators=ops,
            ),
            "expired.xml": make_txc(
                services=[make_service("S9", line="99", period=("2020-01-01", "2020-12-31"))],
                stops=["1800AAA1"],
            ),
        },
    )
    make_zip(
        dl / "second.zip",
        {
            "b.xml": make_txc(
                services=[make_service("S1", line="10", revision=2, operator_ref="O1")],
                stops=["1800AAA2", "X1"],
                operators=ops,
            ),
        },
    )
    (dl / "corrupt.zip").write_bytes(b"not a zip")

    ref = layout.reference_root()
    ref.mkdir(parents=True)
    (ref / "noc.csv").write_text("nocCode,operatorPublicName\nABCD,Acme Buses\n", encoding="utf-8")


def test_run_build_writes_output_and_metadata(layout, make_txc, make_service, make_zip) -> None:
    _seed(layout, make_txc, make_service, make_zip)

    result = run_build(layout=layout, today=TODAY, timezone="Europe/London", run_id="r1")

    out = json.loads(layout.output_json().read_text(encoding="utf-8"))
    assert out == result.output
    assert sorted(out) == ["1800AAA1", "1800AAA2", "X1"]
    assert out["X1"] == [
        {
            "ref": "10",
            "name": "10",
            "operator": "Acme Buses",
            "operatorCode": "ABCD",
            "serviceCode": "S1",
        }
    ]

    md = json.loads(layout.build_metadata_json().read_text(encoding="utf-8"))
    assert md["run_id"] == "r1"
    assert md["reference_date"] == "2025-06-15"
    assert md["stops"] == 3
    assert md["stats"]["archives_processed"] == 2
    assert md["stats"]["archives_failed"] == 1
    assert md["stats"]["documents_processed"] == 3
    assert md["stats"]["services_seen"] == 3
    assert md["stats"]["services_kept"] == 2
    assert md["stats"]["services_expired"] == 1
    statuses = {a["name"]: a["status"] for a in md["input_archives"]}
    assert statuses == {"first.zip": "ok", "second.zip": "ok", "corrupt.zip": "failed"}
    assert any("corrupt.zip" in w for w in md["warnings"])


def test_run_build_with_no_archives_still_writes_output(layout) -> None:
    layout.downloads_root().mkdir(parents=True)
    result = run_build(layout=layout, today=TODAY, timezone="Europe/London", run_id="r2")
    assert result.output == {}
    assert json.loads(layout.output_json().read_text(encoding="utf-8")) == {}
    # the NOC table is missing, which is a warning, not a failure
    assert result.metadata.warnings


def test_run_build_fails_without_downloads_dir(layout) -> None:
    with pytest.raises(InputDataError):
        run_build(layout=layout, today=TODAY, timezone="Europe/London", run_id="r3")


def test_unopenable_archive_does_not_drop_the_others(layout, make_txc, make_service, make_zip) -> None:
    dl = layout.downloads_root()
    make_zip(dl / "a.zip", {"a.xml": make_txc(services=[make_service("SA", line="1")], stops=["STOPA"])})
    (dl / "b.zip").write_bytes(b"PK\x03\x04 truncated")
    make_zip(dl / "c.zip", {"c.xml": make_txc(services=[make_service("SC", line="2")], stops=["STOPC"])})

    result = run_build(layout=layout, today=TODAY, timezone="Europe/London", run_id="r4")

    assert {stop: [r["serviceCode"] for r in recs] for stop, recs in result.output.items()} == {
        "STOPA": ["SA"],
        "STOPC": ["SC"],
    }
    assert [(a.name, a.status) for a in result.metadata.input_archives] == [
        ("a.zip", "ok"),
        ("b.zip", "failed"),
        ("c.zip", "ok"),
    ]
    assert result.metadata.stats["archives_processed"] == 2
    assert result.metadata.stats["archives_failed"] == 1
