"""
Consolidation loop: archives -> entries -> documents -> index.

All mutation happens on a BuildState owned by the caller, and only
through VersionRegistry.offer and StopServiceIndex.add. Processing is
sequential, so there is exactly one writer.

Associations made under a version that is later superseded are kept;
only occurrences that arrive after a newer version are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import IO

import structlog

from txc_stop_index.core import DocumentParseError, EntryReadError

from .archive import ArchiveEntry, iter_xml_entries
from .index import StopServiceIndex
from .models import BuildStats, ResolvedService, ServiceFact, TxcDocument
from .operators import OperatorDirectory, resolve_operator
from .txc import parse_document
from .validity import is_active
from .versions import VersionKey, VersionRegistry

log = structlog.get_logger(__name__)


@dataclass(slots=True)
class BuildState:
    today: date
    directory: OperatorDirectory = field(default_factory=OperatorDirectory)
    versions: VersionRegistry = field(default_factory=VersionRegistry)
    index: StopServiceIndex = field(default_factory=StopServiceIndex)
    stats: BuildStats = field(default_factory=BuildStats)


def resolve_service(svc: ServiceFact, directory: OperatorDirectory) -> ResolvedService:
    return ResolvedService(
        ref=svc.ref,
        name=svc.name,
        operator=resolve_operator(
            svc.raw_operator_code, svc.document_operator_name, directory
        ),
        operator_code=svc.raw_operator_code,
        service_code=svc.service_code,
    )


def consolidate_document(doc: TxcDocument, state: BuildState) -> int:
    """
    Merge one parsed document. Returns the number of services kept.
    """
    stats = state.stats
    stats.services_seen += len(doc.services)

    kept = 0
    for svc in doc.services_in_use():
        if not is_active(svc, doc, state.today):
            stats.services_expired += 1
            continue

        if svc.service_code and not state.versions.offer(
            svc.service_code, VersionKey.of(svc)
        ):
            stats.services_superseded += 1
            continue

        resolved = resolve_service(svc, state.directory)
        for stop_id in doc.stop_refs:
            state.index.add(stop_id, resolved)
        kept += 1

    stats.services_kept += kept
    return kept


def consolidate_entry(entry: ArchiveEntry, state: BuildState) -> bool:
    """
    Read, parse and merge one entry. Bad entries are logged and counted,
    never raised.
    """
    try:
        raw = entry.read()
    except EntryReadError as e:
        state.stats.entries_failed += 1
        log.warning("entry.read_failed", entry=entry.name, error=e.reason)
        return False

    try:
        doc = parse_document(raw)
    except DocumentParseError as e:
        state.stats.documents_failed += 1
        log.warning("document.skipped", entry=entry.name, error=str(e))
        return False

    if doc is None:
        state.stats.documents_failed += 1
        log.debug("document.skipped", entry=entry.name, error="not a TransXChange root")
        return False

    state.stats.documents_processed += 1
    consolidate_document(doc, state)
    return True


def consolidate_archive(archive: Path | IO[bytes], state: BuildState, *, label: str | None = None) -> int:
    """
    Merge every XML entry of one archive. Raises ArchiveOpenError when the
    container cannot be opened; the state is untouched in that case.
    Returns the number of documents merged.
    """
    merged = 0
    for entry in iter_xml_entries(archive, label=label):
        if consolidate_entry(entry, state):
            merged += 1
    state.stats.archives_processed += 1
    return merged
