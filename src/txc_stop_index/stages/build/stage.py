from __future__ import annotations

from datetime import date
from typing import Any

from txc_stop_index.core import today_in
from txc_stop_index.pipeline import EventType, RunContext

from .runner import run_build


def reference_date(ctx: RunContext) -> date:
    """
    --today wins; otherwise the civil date in the configured zone.
    """
    raw = ctx.meta.get("today")
    if raw:
        return date.fromisoformat(str(raw))
    return today_in(str(ctx.meta.get("timezone") or "Europe/London"))


def stage_build(ctx: RunContext) -> dict[str, Any]:
    today = reference_date(ctx)
    tz = str(ctx.meta.get("timezone") or "Europe/London")

    result = run_build(layout=ctx.layout, today=today, timezone=tz, run_id=ctx.run_id)
    md = result.metadata

    ctx.emit(EventType.BUILD_FINISH, stage="build", stops=md.stops, **md.stats)

    artifacts = [
        ctx.record_artifact(stage="build", path=result.output_path),
        ctx.record_artifact(stage="build", path=ctx.layout.build_metadata_json()),
    ]

    return {
        "output": str(result.output_path),
        "reference_date": md.reference_date,
        "stops": md.stops,
        "_metrics": dict(md.stats),
        "_warnings": list(md.warnings),
        "_artifacts": artifacts,
    }
