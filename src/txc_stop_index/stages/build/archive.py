"""
Pull-based reading of zipped TransXChange archives.

`iter_xml_entries` yields one ArchiveEntry per XML member, descending into
nested zips. Entry bytes are read lazily through `entry.read()`, which must
be called before advancing the iterator; a failed read raises
EntryReadError for that entry only.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Iterator

from txc_stop_index.core import ArchiveOpenError, EntryReadError, InputDataError

_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    OSError,
    EOFError,
    NotImplementedError,
    RuntimeError,
    # reading after the iterator has moved past the archive
    ValueError,
)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    _reader: Callable[[], bytes]

    def read(self) -> bytes:
        return self._reader()


def discover_archives(downloads_dir: Path) -> list[Path]:
    root = Path(downloads_dir)
    if not root.is_dir():
        raise InputDataError(f"Downloads dir does not exist: {root}")
    return sorted(
        (p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == ".zip"),
        key=lambda p: p.as_posix(),
    )


def _skip(name: str) -> bool:
    return name.startswith("__MACOSX") or name.endswith("/")


def _member_reader(zf: zipfile.ZipFile, info: zipfile.ZipInfo, label: str) -> Callable[[], bytes]:
    def _read() -> bytes:
        try:
            return zf.read(info)
        except _READ_ERRORS as e:
            raise EntryReadError(label, str(e)) from e

    return _read


def _failed(label: str, reason: str) -> ArchiveEntry:
    def _read() -> bytes:
        raise EntryReadError(label, reason)

    return ArchiveEntry(name=label, _reader=_read)


def _iter_zip(zf: zipfile.ZipFile, prefix: str) -> Iterator[ArchiveEntry]:
    for info in zf.infolist():
        if _skip(info.filename):
            continue
        label = f"{prefix}{info.filename}"
        lower = info.filename.lower()

        if lower.endswith(".xml"):
            yield ArchiveEntry(name=label, _reader=_member_reader(zf, info, label))
        elif lower.endswith(".zip"):
            try:
                nested = zipfile.ZipFile(io.BytesIO(zf.read(info)))
            except _READ_ERRORS as e:
                yield _failed(label, str(e))
                continue
            with nested:
                yield from _iter_zip(nested, prefix=f"{label}/")


def iter_xml_entries(archive: Path | IO[bytes], *, label: str | None = None) -> Iterator[ArchiveEntry]:
    """
    Raises ArchiveOpenError (on first iteration) when the container itself
    cannot be opened.
    """
    name = label or str(archive)
    try:
        zf = zipfile.ZipFile(archive)
    except _READ_ERRORS as e:
        raise ArchiveOpenError(name, str(e)) from e

    with zf:
        yield from _iter_zip(zf, prefix="")
