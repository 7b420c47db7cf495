from __future__ import annotations

import traceback
from dataclasses import dataclass


class ETLError(RuntimeError):
    """Base error"""


@dataclass(frozen=True, slots=True)
class StageError:
    """
    A normalized error record for stage failures.
    """

    exc_type: str
    message: str
    traceback: str


def stage_error_from_exc(exc: BaseException) -> StageError:
    return StageError(
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
    )


class InputDataError(ETLError):
    """
    Upstream content is missing or unusable. Never retried.
    """


class ArchiveOpenError(InputDataError):
    """
    A whole archive could not be opened. Fatal for that archive only.
    """

    def __init__(self, archive: str, reason: str) -> None:
        super().__init__(f"Cannot open archive {archive}: {reason}")
        self.archive = archive
        self.reason = reason


class EntryReadError(InputDataError):
    """One archive entry could not be read; the entry is skipped"""

    def __init__(self, entry: str, reason: str) -> None:
        super().__init__(f"Cannot read entry {entry}: {reason}")
        self.entry = entry
        self.reason = reason


class DocumentParseError(InputDataError):
    """Malformed XML; the document contributes nothing"""


class ReferenceDataError(ETLError):
    """
    Operator table or overrides could not be used. Callers degrade to an
    empty mapping and log a warning.
    """


class ShardError(ETLError):
    """Shard-stage error"""
