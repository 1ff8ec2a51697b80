"""
Target commit model
The (repository URL, commit hash, slug) triple a repair run works on
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

GITHUB_URL = "https://github.com"


class TargetCommit(BaseModel):
    """Read-only for the lifetime of one repair run"""

    model_config = ConfigDict(frozen=True)

    commit_id: str
    repo_slug: str
    repo_url: str

    @model_validator(mode="before")
    @classmethod
    def default_repo_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("repo_url") and data.get("repo_slug"):
            data = {**data, "repo_url": f"{GITHUB_URL}/{data['repo_slug']}.git"}
        return data

    @field_validator("commit_id", "repo_slug")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def commit_url(self) -> str:
        return f"{GITHUB_URL}/{self.repo_slug}/commit/{self.commit_id}"

    @property
    def short_id(self) -> str:
        return self.commit_id[:10]
