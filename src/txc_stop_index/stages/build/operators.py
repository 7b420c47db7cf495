"""
Operator display-name resolution.

The directory pairs the canonical NOC table with hand-maintained
overrides. Overrides win over the table, and code-keyed overrides win
over name-keyed ones, so a mislabelled code can be corrected without
touching the table.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import polars as pl
import structlog
from pydantic import TypeAdapter, ValidationError

from txc_stop_index.core import ReferenceDataError

log = structlog.get_logger(__name__)

_CODE_HEADER = re.compile(r"^noc.?code$", re.IGNORECASE)
_NAME_HEADERS = (
    re.compile(r"operator.*public.*name", re.IGNORECASE),
    re.compile(r"operator.*name", re.IGNORECASE),
)

_OVERRIDES = TypeAdapter(dict[str, str])


@dataclass(frozen=True, slots=True)
class OperatorDirectory:
    canonical: Mapping[str, str] = field(default_factory=dict)
    # declared order matters for prefix matching
    overrides: Mapping[str, str] = field(default_factory=dict)

    def prefix_override(self, code: str) -> str | None:
        for key, value in self.overrides.items():
            if key and code.startswith(key):
                return value
        return None


def resolve_operator(
    raw_code: str | None, document_name: str | None, directory: OperatorDirectory
) -> str:
    code = (raw_code or "").strip()
    name = (document_name or "").strip()
    ov = directory.overrides

    if code:
        if code in ov:
            return ov[code]
        hit = directory.prefix_override(code)
        if hit is not None:
            return hit
        if code in directory.canonical:
            return directory.canonical[code]

    if name and name in ov:
        return ov[name]
    if name:
        return name
    return code


def _pick_columns(header: list[str]) -> tuple[str, str]:
    cleaned = [h.strip() for h in header]
    code_col = next((h for h, c in zip(header, cleaned) if _CODE_HEADER.match(c)), None)
    name_col = None
    for pattern in _NAME_HEADERS:
        name_col = next((h for h, c in zip(header, cleaned) if pattern.search(c)), None)
        if name_col is not None:
            break
    if code_col is None or name_col is None:
        raise ReferenceDataError(
            f"Could not find NOC code/operator name columns in header: {cleaned}"
        )
    return code_col, name_col


def _rows_with_polars(path: Path) -> tuple[list[str], list[tuple[object, ...]]]:
    df = pl.read_csv(path, infer_schema_length=0, truncate_ragged_lines=True)
    return list(df.columns), list(df.iter_rows())


def _rows_with_csv(path: Path) -> tuple[list[str], list[tuple[object, ...]]]:
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, [])
        return header, [tuple(r) for r in reader]


def load_noc_table(path: Path) -> dict[str, str]:
    """
    Map NOC code -> operator public name. Raises ReferenceDataError when
    the file is missing or its columns cannot be located.
    """
    path = Path(path)
    if not path.is_file():
        raise ReferenceDataError(f"NOC CSV not found at {path}")

    try:
        header, rows = _rows_with_polars(path)
    except pl.exceptions.PolarsError:
        try:
            header, rows = _rows_with_csv(path)
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise ReferenceDataError(f"Failed to read NOC CSV {path}: {e}") from e

    code_col, name_col = _pick_columns(header)
    ci, ni = header.index(code_col), header.index(name_col)

    out: dict[str, str] = {}
    for row in rows:
        if len(row) <= max(ci, ni):
            continue
        code = str(row[ci] or "").strip()
        name = str(row[ni] or "").strip()
        if code and name:
            out[code] = name

    log.info("operators.noc_loaded", path=str(path), entries=len(out))
    return out


def load_overrides(path: Path) -> dict[str, str]:
    """
    A missing file is an empty mapping. Unreadable or wrongly-shaped content
    raises ReferenceDataError.
    """
    path = Path(path)
    if not path.exists():
        log.info("overrides.absent", path=str(path))
        return {}

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ReferenceDataError(f"Could not read overrides {path}: {e}") from e

    try:
        overrides = _OVERRIDES.validate_json(raw)
    except ValidationError as e:
        raise ReferenceDataError(
            f"Malformed overrides {path}: {e.error_count()} error(s)"
        ) from e

    log.info("overrides.loaded", path=str(path), entries=len(overrides))
    return overrides


def load_operator_directory(
    *, noc_csv: Path, overrides_json: Path
) -> tuple[OperatorDirectory, list[str]]:
    """
    Never fails: each half degrades to empty with a warning.
    """
    warnings: list[str] = []

    try:
        canonical = load_noc_table(noc_csv)
    except ReferenceDataError as e:
        log.warning("operators.noc_unavailable", error=str(e))
        warnings.append(str(e))
        canonical = {}

    try:
        overrides = load_overrides(overrides_json)
    except ReferenceDataError as e:
        log.warning("overrides.malformed", error=str(e))
        warnings.append(str(e))
        overrides = {}

    return OperatorDirectory(canonical=canonical, overrides=overrides), warnings
