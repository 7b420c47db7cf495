from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from txc_stop_index.core import DataLayout, ILogger, sha256_file

from .events import EventSink, EventType, make_event
from .stage import ArtifactRef


@dataclass(slots=True)
class RunContext:
    """
    State shared by every stage of one pipeline run.
    """

    run_id: str
    run_root: Path
    layout: DataLayout
    logger: ILogger
    events: EventSink

    # free-form options from the CLI (reference date, shard width, ...)
    meta: dict[str, Any] = field(default_factory=dict)

    def stage_logger(self, stage: str) -> ILogger:
        return self.logger.bind(stage=stage)

    def emit(self, event: EventType | str, *, stage: str | None = None, **kw: object) -> None:
        event_value = event.value if isinstance(event, EventType) else str(event)
        # debug only, so console output stays readable
        self.logger.debug(event_value, event_type=event_value, stage=stage, **kw)
        self.events.emit(
            make_event(event_type=event_value, run_id=self.run_id, stage=stage, **kw)
        )

    def record_artifact(self, *, stage: str, path: Path) -> ArtifactRef:
        p = Path(path)
        digest = sha256_file(p)
        art = ArtifactRef(
            path=str(p),
            bytes=digest.bytes,
            sha256=digest.sha256,
        )
        self.emit(
            EventType.ARTIFACT_WRITTEN,
            stage=stage,
            path=art.path,
            bytes=art.bytes,
            sha256=art.sha256,
        )
        return art
