from .config import Settings, load_settings
from .errors import (
    ArchiveOpenError,
    DocumentParseError,
    EntryReadError,
    ETLError,
    InputDataError,
    ReferenceDataError,
    ShardError,
    StageError,
    stage_error_from_exc,
)
from .fs import (
    atomic_dir_swap,
    atomic_write_text,
    make_tmp_dir_for,
    safe_rmtree,
    safe_unlink,
)
from .hashing import FileDigest, sha256_file
from .json import atomic_write_json, read_json, stable_json_dumps
from .logging import ILogger, bind, configure_logging, get_logger
from .paths import DataLayout
from .provenance import new_run_id
from .time import (
    EPOCH,
    UK_TZ,
    monotonic_ms,
    parse_iso_date,
    parse_iso_datetime,
    today_in,
    utc_now_iso,
)

__all__ = [
    "ArchiveOpenError",
    "DataLayout",
    "DocumentParseError",
    "EPOCH",
    "ETLError",
    "EntryReadError",
    "FileDigest",
    "ILogger",
    "InputDataError",
    "ReferenceDataError",
    "Settings",
    "ShardError",
    "StageError",
    "UK_TZ",
    "atomic_dir_swap",
    "atomic_write_json",
    "atomic_write_text",
    "bind",
    "configure_logging",
    "get_logger",
    "load_settings",
    "make_tmp_dir_for",
    "monotonic_ms",
    "new_run_id",
    "parse_iso_date",
    "parse_iso_datetime",
    "read_json",
    "safe_rmtree",
    "safe_unlink",
    "sha256_file",
    "stable_json_dumps",
    "stage_error_from_exc",
    "today_in",
    "utc_now_iso",
]
