from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from txc_stop_index.core import atomic_write_json

from .stage import StageResult


@dataclass(slots=True)
class RunReport:
    """
    Written once per run as run_report.json. `warnings` and `artifacts`
    roll up every stage so degraded reference data or a skipped archive
    shows at the top level.
    """

    run_id: str
    started_at_utc: str
    finished_at_utc: str
    status: str  # "success" | "failed"
    duration_ms: int

    stages: list[StageResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)
    events_jsonl: Optional[str] = None
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def write_json(self, path: Path) -> None:
        atomic_write_json(Path(path), self.to_dict())


def build_run_report(
    *,
    run_id: str,
    started_at_utc: str,
    finished_at_utc: str,
    duration_ms: int,
    stage_results: list[StageResult],
    events_jsonl: str | None,
    meta: dict[str, Any] | None = None,
) -> RunReport:
    status = "success" if all(s.status != "failed" for s in stage_results) else "failed"
    return RunReport(
        run_id=run_id,
        started_at_utc=started_at_utc,
        finished_at_utc=finished_at_utc,
        status=status,
        duration_ms=duration_ms,
        stages=stage_results,
        warnings=[f"{s.stage}: {w}" for s in stage_results for w in s.warnings],
        artifacts=[a.path for s in stage_results for a in s.artifacts],
        events_jsonl=events_jsonl,
        meta=meta or {},
    )
