from __future__ import annotations

import argparse
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from txc_stop_index.core import (
    DataLayout,
    bind,
    configure_logging,
    get_logger,
    load_settings,
    new_run_id,
)
from txc_stop_index.pipeline import PipelineRunner, RunnerConfig, Stage, StageFn
from txc_stop_index.stages import stage_build, stage_shard

console = Console()


@dataclass(frozen=True, slots=True)
class _CommonArgs:
    cmd: str
    downloads_dir: str | None
    reference_dir: str | None
    out_dir: str | None
    today: str | None
    shard_prefix_len: int | None


def _iso_date(raw: str) -> str:
    try:
        return date.fromisoformat(raw).isoformat()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {raw!r}") from e


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from e
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--downloads-dir",
        default=None,
        help="Directory scanned for **/*.zip TransXChange archives (default: <data_root>/downloads).",
    )
    p.add_argument(
        "--reference-dir",
        default=None,
        help="Directory holding noc.csv and operator-overrides.json (default: <data_root>/reference).",
    )
    p.add_argument(
        "--out-dir",
        default=None,
        help="Directory for stop_to_services.json, build_metadata.json and shards/.",
    )
    p.add_argument(
        "--today",
        type=_iso_date,
        default=None,
        help="Reference date for validity checks (default: today in the configured timezone).",
    )
    p.add_argument(
        "--shard-prefix-len",
        type=_positive_int,
        default=None,
        help="Characters of the stop id used to pick a shard file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="txc-stop-index")
    sub = p.add_subparsers(dest="cmd", required=True)

    commands: dict[str, str] = {
        "build": "Consolidate TransXChange archives into stop_to_services.json",
        "shard": "Split stop_to_services.json into shards/<prefix>.json",
        "run": "Build, then shard",
    }

    for cmd, help_text in commands.items():
        sp = sub.add_parser(cmd, help=help_text)
        _add_common_args(sp)

    return p


def _common(args: argparse.Namespace) -> _CommonArgs:
    return _CommonArgs(
        cmd=str(args.cmd),
        downloads_dir=args.downloads_dir,
        reference_dir=args.reference_dir,
        out_dir=args.out_dir,
        today=args.today,
        shard_prefix_len=args.shard_prefix_len,
    )


_STAGE_FNS: dict[str, Callable[[Any], dict[str, Any] | None]] = {
    "build": stage_build,
    "shard": stage_shard,
}

_PIPELINES: dict[str, tuple[str, ...]] = {
    "build": ("build",),
    "shard": ("shard",),
    "run": ("build", "shard"),
}


def _with_status(stage_id: str, fn: StageFn) -> StageFn:
    def _run_with_status(ctx):
        with console.status(f"[bold]{stage_id}[/]", spinner="dots"):
            return fn(ctx)

    return _run_with_status


def _build_stages(cmd: str) -> list[Stage]:
    return [
        PipelineRunner.fn(stage_id=sid, fn=_with_status(sid, _STAGE_FNS[sid]))
        for sid in _PIPELINES[cmd]
    ]


def _layout(common: _CommonArgs) -> DataLayout:
    s = load_settings()
    base = DataLayout.from_settings(s)
    return DataLayout(
        root=base.root,
        downloads=Path(common.downloads_dir) if common.downloads_dir else base.downloads,
        reference=Path(common.reference_dir) if common.reference_dir else base.reference,
        out=Path(common.out_dir) if common.out_dir else base.out,
        noc_csv_name=base.noc_csv_name,
        overrides_name=base.overrides_name,
        output_name=base.output_name,
    )


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    common = _common(args)

    s = load_settings()
    configure_logging(level=s.log_level, fmt=s.log_format)
    log = get_logger("txc_stop_index")

    run_id = new_run_id()
    bind(run_id=run_id, command=common.cmd)

    layout = _layout(common)
    runner = PipelineRunner(
        stages=_build_stages(common.cmd),
        cfg=RunnerConfig(stop_on_failure=True),
        logger=log,
    )

    meta: dict[str, Any] = {
        "today": common.today,
        "timezone": s.timezone,
        "shard_prefix_len": (
            common.shard_prefix_len
            if common.shard_prefix_len is not None
            else s.shard_prefix_len
        ),
    }

    console.print(
        Panel.fit(
            Text(
                f"txc-stop-index - {common.cmd}\nrun_id={run_id}\n"
                f"downloads={layout.downloads_root()}",
                style="bold",
            ),
            title="Run",
        )
    )

    exit_code, report_path = runner.run(
        layout=layout, run_root=Path(s.run_root), run_id=run_id, meta=meta
    )

    tbl = Table(title="Result", show_header=True, box=None)
    tbl.add_row(
        "status", "[green]ok[/green]" if exit_code == 0 else "[red]failed[/red]"
    )
    tbl.add_row("output", str(layout.output_json()))
    tbl.add_row("report", str(report_path))
    console.print(tbl)

    return int(exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
