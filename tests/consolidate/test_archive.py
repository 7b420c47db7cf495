from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from txc_stop_index.core import ArchiveOpenError, EntryReadError, InputDataError
from txc_stop_index.stages.build.archive import discover_archives, iter_xml_entries


def test_only_xml_entries_are_yielded(tmp_path: Path, make_zip) -> None:
    z = make_zip(
        tmp_path / "a.zip",
        {
            "one.xml": "<a/>",
            "TWO.XML": "<b/>",
            "readme.txt": "skip",
            "__MACOSX/._one.xml": "junk",
        },
    )
    entries = list(iter_xml_entries(z))
    assert [e.name for e in entries] == ["one.xml", "TWO.XML"]


def test_entries_read_lazily(tmp_path: Path, make_zip) -> None:
    z = make_zip(tmp_path / "a.zip", {"one.xml": "<a/>", "two.xml": "<b/>"})
    got = [(e.name, e.read()) for e in iter_xml_entries(z)]
    assert got == [("one.xml", b"<a/>"), ("two.xml", b"<b/>")]


def test_nested_zip_is_descended(tmp_path: Path, make_zip, make_zip_bytes) -> None:
    inner = make_zip_bytes({"inner.xml": "<i/>"})
    z = make_zip(tmp_path / "outer.zip", {"sub/inner.zip": inner, "top.xml": "<t/>"})
    got = {e.name: e.read() for e in iter_xml_entries(z)}
    assert got == {"sub/inner.zip/inner.xml": b"<i/>", "top.xml": b"<t/>"}


def test_corrupt_nested_zip_is_a_failed_entry(tmp_path: Path, make_zip) -> None:
    z = make_zip(tmp_path / "outer.zip", {"bad.zip": b"not a zip", "ok.xml": "<o/>"})
    got: dict[str, object] = {}
    for entry in iter_xml_entries(z):
        try:
            got[entry.name] = entry.read()
        except EntryReadError as e:
            got[entry.name] = e
    assert list(got) == ["bad.zip", "ok.xml"]
    assert isinstance(got["bad.zip"], EntryReadError)
    assert got["ok.xml"] == b"<o/>"


def test_corrupt_member_raises_entry_read_error(tmp_path: Path) -> None:
    z = tmp_path / "crc.zip"
    with zipfile.ZipFile(z, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("doc.xml", b"<TransXChange/>")

    data = bytearray(z.read_bytes())
    i = data.find(b"<TransXChange/>")
    data[i + 1] ^= 0xFF
    z.write_bytes(bytes(data))

    entries = iter_xml_entries(z)
    entry = next(entries)
    with pytest.raises(EntryReadError) as ei:
        entry.read()
    assert "CRC" in ei.value.reason
    assert next(entries, None) is None


def test_read_after_iteration_is_an_entry_read_error(tmp_path: Path, make_zip) -> None:
    z = make_zip(tmp_path / "a.zip", {"one.xml": "<a/>"})
    (entry,) = list(iter_xml_entries(z))
    with pytest.raises(EntryReadError):
        entry.read()


def test_unopenable_archive_raises_archive_open_error(tmp_path: Path) -> None:
    p = tmp_path / "broken.zip"
    p.write_bytes(b"definitely not a zip file")
    with pytest.raises(ArchiveOpenError) as ei:
        list(iter_xml_entries(p, label="broken.zip"))
    assert ei.value.archive == "broken.zip"


def test_discover_archives_recurses_and_sorts(tmp_path: Path, make_zip) -> None:
    make_zip(tmp_path / "dl" / "b" / "z.zip", {"x.xml": "<x/>"})
    make_zip(tmp_path / "dl" / "a.ZIP", {"x.xml": "<x/>"})
    (tmp_path / "dl" / "notes.txt").write_text("n")
    found = [p.relative_to(tmp_path / "dl").as_posix() for p in discover_archives(tmp_path / "dl")]
    assert found == ["a.ZIP", "b/z.zip"]


def test_discover_archives_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(InputDataError):
        discover_archives(tmp_path / "nope")
