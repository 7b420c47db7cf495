from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from txc_stop_index.core import (
    ShardError,
    atomic_dir_swap,
    atomic_write_json,
    make_tmp_dir_for,
    read_json,
    safe_rmtree,
)

log = structlog.get_logger(__name__)

CATCH_ALL = "misc"


def shard_key(stop_id: str, prefix_len: int) -> str:
    if len(stop_id) < prefix_len:
        return CATCH_ALL
    return stop_id[:prefix_len]


def partition(
    stop_to_services: dict[str, Any], prefix_len: int
) -> dict[str, dict[str, Any]]:
    buckets: dict[str, dict[str, Any]] = {}
    for stop_id, services in stop_to_services.items():
        buckets.setdefault(shard_key(str(stop_id), prefix_len), {})[stop_id] = services
    return buckets


def run_shard(*, source: Path, shards_dir: Path, prefix_len: int) -> dict[str, int]:
    """
    Split the consolidated output into shards_dir/<prefix>.json. The whole
    directory is swapped in at once. Returns keys per shard.
    """
    if prefix_len < 1:
        raise ShardError(f"prefix length must be >= 1, got {prefix_len}")
    source = Path(source)
    if not source.is_file():
        raise ShardError(f"Missing {source} (run build first)")

    src = read_json(source)
    if not isinstance(src, dict):
        raise ShardError(f"{source} must hold a JSON object, got {type(src).__name__}")

    buckets = partition(src, prefix_len)

    tmp_dir = make_tmp_dir_for(shards_dir)
    try:
        counts: dict[str, int] = {}
        for prefix in sorted(buckets):
            atomic_write_json(tmp_dir / f"{prefix}.json", buckets[prefix], indent=None)
            counts[prefix] = len(buckets[prefix])
            log.debug("shard.written", shard=f"{prefix}.json", keys=counts[prefix])
        atomic_dir_swap(final_dir=Path(shards_dir), tmp_dir=tmp_dir)
    except Exception:
        safe_rmtree(tmp_dir)
        raise

    log.info("shard.summary", shards=len(counts), keys=sum(counts.values()))
    return counts
