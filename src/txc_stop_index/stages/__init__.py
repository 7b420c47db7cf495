from .build import stage_build
from .shard import stage_shard

__all__ = [
    "stage_build",
    "stage_shard",
]
