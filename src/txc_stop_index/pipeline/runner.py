from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from txc_stop_index.core import (
    DataLayout,
    ILogger,
    configure_logging,
    get_logger,
    monotonic_ms,
    new_run_id,
    utc_now_iso,
)

from .context import RunContext
from .events import EventSink, EventType, make_event
from .report import build_run_report
from .stage import FunctionStage, Stage, StageFn, StageResult, format_duration_ms, run_stage


@dataclass(slots=True)
class RunnerConfig:
    stop_on_failure: bool = True


def default_logger() -> ILogger:
    configure_logging()
    return get_logger("pipeline")


class PipelineRunner:
    def __init__(
        self,
        *,
        stages: Sequence[Stage],
        cfg: RunnerConfig | None = None,
        logger: ILogger | None = None,
    ) -> None:
        self.stages = list(stages)
        self.cfg = cfg or RunnerConfig()
        self.logger: ILogger = logger or default_logger()

        ids = [s.stage_id for s in self.stages]
        if len(ids) != len(set(ids)):
            dupes = sorted({x for x in ids if ids.count(x) > 1})
            raise ValueError(f"Duplicate stage_id(s): {dupes}")

    @staticmethod
    def fn(stage_id: str, fn: StageFn) -> Stage:
        return FunctionStage(stage_id=stage_id, fn=fn)

    def run(
        self,
        *,
        layout: DataLayout,
        run_root: Path,
        run_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[int, Path]:
        """
        Execute the stages in order and write events.jsonl and
        run_report.json under run_root/<run_id>/.

        Returns: (exit_code, report_path)
        """
        meta = meta or {}
        rid = run_id or new_run_id()
        run_dir = Path(run_root) / rid
        run_dir.mkdir(parents=True, exist_ok=True)

        events_path = run_dir / "events.jsonl"
        sink = EventSink(events_path)

        ctx = RunContext(
            run_id=rid,
            run_root=run_dir,
            layout=layout,
            logger=self.logger,
            events=sink,
            meta=meta,
        )

        started_at = utc_now_iso()
        t0 = monotonic_ms()

        self.logger.info(
            "Pipeline starting",
            run_id=rid,
            stages=[s.stage_id for s in self.stages],
            downloads=str(layout.downloads_root()),
            out=str(layout.out_root()),
        )
        sink.emit(
            make_event(
                event_type=EventType.RUN_ENV,
                run_id=rid,
                hostname=socket.gethostname(),
                pid=os.getpid(),
                downloads=str(layout.downloads_root()),
                reference=str(layout.reference_root()),
                out=str(layout.out_root()),
            )
        )
        sink.emit(make_event(event_type=EventType.RUN_START, run_id=rid, **meta))

        results: list[StageResult] = []
        total = len(self.stages)
        for idx, st in enumerate(self.stages, start=1):
            res = run_stage(ctx=ctx, stage=st, index=idx, total=total)
            results.append(res)

            if res.status == "failed" and self.cfg.stop_on_failure:
                self.logger.error("Stopping on first failure", stage=st.stage_id)
                break

        duration = monotonic_ms() - t0
        report = build_run_report(
            run_id=rid,
            started_at_utc=started_at,
            finished_at_utc=utc_now_iso(),
            duration_ms=duration,
            stage_results=results,
            events_jsonl=str(events_path),
            meta=meta,
        )

        report_json = run_dir / "run_report.json"
        report.write_json(report_json)

        sink.emit(
            make_event(
                event_type=EventType.RUN_FINISH,
                run_id=rid,
                status=report.status,
                duration_ms=duration,
                report_json=str(report_json),
            )
        )

        self.logger.info(
            "Run complete",
            duration=format_duration_ms(duration),
            report=str(report_json),
            status=report.status,
        )

        exit_code = 0 if report.status == "success" else 1
        return exit_code, report_json
