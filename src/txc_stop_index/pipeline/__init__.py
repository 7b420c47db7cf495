from .context import RunContext
from .events import EventSink, EventType
from .runner import PipelineRunner, RunnerConfig
from .stage import FunctionStage, Stage, StageFn, StageResult

__all__ = [
    "EventSink",
    "EventType",
    "FunctionStage",
    "PipelineRunner",
    "RunContext",
    "RunnerConfig",
    "Stage",
    "StageFn",
    "StageResult",
]
