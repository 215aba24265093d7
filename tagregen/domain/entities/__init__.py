from tagregen.domain.entities.failure_record import FailureRecord
from tagregen.domain.entities.generation_config import GenerationConfig
from tagregen.domain.entities.progress import ProgressSnapshot, RunResult, RunStatus
from tagregen.domain.entities.work_item import WorkItem

__all__ = [
    "WorkItem",
    "FailureRecord",
    "GenerationConfig",
    "ProgressSnapshot",
    "RunResult",
    "RunStatus",
]
