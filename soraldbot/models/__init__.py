from .target_commit import TargetCommit
from .patch import PatchRecord, RuleResult
from .run import RepairRunResult, RuleRun, RuleState, StepStatus

__all__ = [
    "TargetCommit",
    "PatchRecord",
    "RuleResult",
    "RepairRunResult",
    "RuleRun",
    "RuleState",
    "StepStatus",
]
