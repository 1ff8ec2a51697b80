"""
Patch models
What one rule produces: the set of files Sorald touched and the patch built from them
"""
from typing import FrozenSet, Iterable, Optional

from pydantic import BaseModel, ConfigDict


class PatchRecord(BaseModel):
    """Tool name, description and diff text for one rule's fix"""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    description: str = ""
    diff: str


class RuleResult(BaseModel):
    """Files modified by the repair engine for one rule"""

    model_config = ConfigDict(frozen=True)

    rule: str
    files: FrozenSet[str] = frozenset()

    @classmethod
    def from_files(cls, rule: str, files: Optional[Iterable[str]]) -> "RuleResult":
        # the engine reports "nothing fixed" as None or an empty set
        return cls(rule=rule, files=frozenset(files or ()))

    @property
    def is_empty(self) -> bool:
        return not self.files
