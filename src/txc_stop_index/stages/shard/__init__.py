from .stage import stage_shard

__all__ = ["stage_shard"]
