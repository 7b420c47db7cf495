from __future__ import annotations

from typing import Any

from txc_stop_index.pipeline import EventType, RunContext

from .runner import run_shard


def stage_shard(ctx: RunContext) -> dict[str, Any]:
    raw = ctx.meta.get("shard_prefix_len")
    prefix_len = 4 if raw is None else int(raw)
    shards_dir = ctx.layout.shards()

    counts = run_shard(
        source=ctx.layout.output_json(), shards_dir=shards_dir, prefix_len=prefix_len
    )

    ctx.emit(
        EventType.SHARD_FINISH,
        stage="shard",
        shards=len(counts),
        keys=sum(counts.values()),
    )

    return {
        "shards_dir": str(shards_dir),
        "_metrics": {"shards": len(counts), "keys": sum(counts.values())},
    }
