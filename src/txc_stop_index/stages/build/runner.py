from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path

import structlog

from txc_stop_index.core import (
    ArchiveOpenError,
    DataLayout,
    atomic_write_json,
    sha256_file,
    utc_now_iso,
)

from .archive import discover_archives
from .engine import BuildState, consolidate_archive
from .models import BuildMetadata, InputArchive
from .operators import load_operator_directory
from .output import StopToServices, build_output, write_output

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class BuildResult:
    output: StopToServices
    output_path: Path
    metadata: BuildMetadata


def run_build(
    *,
    layout: DataLayout,
    today: date,
    timezone: str,
    run_id: str,
) -> BuildResult:
    """
    Consolidate every archive under the downloads dir and write
    stop_to_services.json plus build_metadata.json.

    Fails only when the downloads dir itself is missing; an archive that
    will not open is recorded and skipped.
    """
    archives = discover_archives(layout.downloads_root())
    directory, warnings = load_operator_directory(
        noc_csv=layout.noc_csv(), overrides_json=layout.overrides_json()
    )
    state = BuildState(today=today, directory=directory)

    log.info(
        "build.plan",
        archives=len(archives),
        reference_date=today.isoformat(),
        noc_entries=len(directory.canonical),
        overrides=len(directory.overrides),
    )

    inputs: list[InputArchive] = []
    for path in archives:
        inputs.append(_consolidate_one(path, state, warnings))

    output = build_output(state.index)
    out_path = layout.output_json()
    write_output(out_path, output)

    metadata = BuildMetadata(
        run_id=run_id,
        generated_at_utc=utc_now_iso(),
        reference_date=today.isoformat(),
        timezone=timezone,
        output=out_path.name,
        stops=len(output),
        input_archives=inputs,
        stats=state.stats.as_dict(),
        warnings=warnings,
    )
    atomic_write_json(layout.build_metadata_json(), metadata.model_dump(mode="json"))

    log.info("build.summary", stops=len(output), **state.stats.as_dict())
    return BuildResult(output=output, output_path=out_path, metadata=metadata)


def _consolidate_one(path: Path, state: BuildState, warnings: list[str]) -> InputArchive:
    try:
        digest = sha256_file(path)
        merged = consolidate_archive(path, state, label=path.name)
    except OSError as e:
        err: Exception = ArchiveOpenError(path.name, str(e))
    except ArchiveOpenError as e:
        err = e
    else:
        log.info("archive.done", archive=path.name, documents=merged)
        return InputArchive(
            name=path.name, sha256=digest.sha256, bytes=digest.bytes, status="ok"
        )

    state.stats.archives_failed += 1
    log.warning("archive.open_failed", archive=path.name, error=str(err))
    warnings.append(str(err))
    return InputArchive(name=path.name, status="failed")
