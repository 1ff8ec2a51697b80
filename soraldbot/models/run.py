"""
Repair run models
Step status, per-rule state machine and the overall run result
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .patch import PatchRecord


class StepStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILURE = "failure"


class RuleState(str, Enum):
    NOT_STARTED = "not_started"
    CHECKED_OUT = "checked_out"
    REPAIRED = "repaired"
    SKIPPED = "skipped"
    COMMITTED = "committed"
    PATCH_BUILT = "patch_built"
    NOTIFIED = "notified"
    PR_CREATED = "pr_created"


# Allowed transitions of the per-rule state machine
RULE_TRANSITIONS = {
    RuleState.NOT_STARTED: {RuleState.CHECKED_OUT},
    RuleState.CHECKED_OUT: {RuleState.REPAIRED},
    RuleState.REPAIRED: {RuleState.SKIPPED, RuleState.COMMITTED},
    RuleState.COMMITTED: {RuleState.PATCH_BUILT},
    RuleState.PATCH_BUILT: {RuleState.NOTIFIED},
    RuleState.NOTIFIED: {RuleState.PR_CREATED},
    RuleState.SKIPPED: set(),
    RuleState.PR_CREATED: set(),
}


class RuleRun(BaseModel):
    """Progress of a single rule through the repair state machine"""
    rule: str
    state: RuleState = RuleState.NOT_STARTED
    history: List[RuleState] = Field(default_factory=lambda: [RuleState.NOT_STARTED])
    files: List[str] = Field(default_factory=list)
    commit_sha: Optional[str] = None
    branch_name: Optional[str] = None
    pull_request_url: Optional[str] = None

    def advance(self, new_state: RuleState) -> None:
        if new_state not in RULE_TRANSITIONS[self.state]:
            raise ValueError(f"Illegal transition for rule {self.rule}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)


class RepairRunResult(BaseModel):
    status: StepStatus = StepStatus.SUCCESS
    message: str = ""
    base_branch: Optional[str] = None
    has_been_patched: bool = False
    rules: List[RuleRun] = Field(default_factory=list)
    patches: List[PatchRecord] = Field(default_factory=list)
    pull_request_urls: List[str] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
