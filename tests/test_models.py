"""Tests for models, settings and pull request text helpers."""

import pytest
from pydantic import ValidationError

from soraldbot.core.config import Settings
from soraldbot.models import PatchRecord, RuleResult, RuleRun, RuleState, TargetCommit
from soraldbot.sorald_agent.pull_request import (
    PR_TITLE,
    build_branch_name,
    build_commit_message,
    build_pr_text,
    rule_link,
)

COMMIT = "4f5c2a9e1b7d3c8a0e6f4b2d9c1a7e5f3b8d0c6a"


class TestTargetCommit:
    def test_repo_url_defaults_to_github(self):
        target = TargetCommit(commit_id=COMMIT, repo_slug="owner/project")

        assert target.repo_url == "https://github.com/owner/project.git"
        assert target.commit_url == f"https://github.com/owner/project/commit/{COMMIT}"
        assert target.short_id == COMMIT[:10]

    def test_explicit_repo_url(self):
        target = TargetCommit(commit_id=COMMIT, repo_slug="owner/project", repo_url="/srv/git/project")
        assert target.repo_url == "/srv/git/project"

    def test_blank_commit_rejected(self):
        with pytest.raises(ValidationError):
            TargetCommit(commit_id="  ", repo_slug="owner/project")

    def test_is_immutable(self):
        target = TargetCommit(commit_id=COMMIT, repo_slug="owner/project")
        with pytest.raises(ValidationError):
            target.commit_id = "other"


class TestRuleResult:
    def test_none_means_nothing_fixed(self):
        assert RuleResult.from_files("2116", None).is_empty

    def test_files(self):
        result = RuleResult.from_files("2116", ["Foo.java", "Foo.java", "Bar.java"])
        assert not result.is_empty
        assert result.files == frozenset({"Foo.java", "Bar.java"})


class TestRuleRun:
    def test_full_path(self):
        run = RuleRun(rule="2116")
        for state in [
            RuleState.CHECKED_OUT,
            RuleState.REPAIRED,
            RuleState.COMMITTED,
            RuleState.PATCH_BUILT,
            RuleState.NOTIFIED,
            RuleState.PR_CREATED,
        ]:
            run.advance(state)

        assert run.state == RuleState.PR_CREATED
        assert run.history[0] == RuleState.NOT_STARTED
        assert len(run.history) == 7

    def test_skip_after_repair(self):
        run = RuleRun(rule="2116")
        run.advance(RuleState.CHECKED_OUT)
        run.advance(RuleState.REPAIRED)
        run.advance(RuleState.SKIPPED)
        assert run.state == RuleState.SKIPPED

    def test_illegal_transition(self):
        run = RuleRun(rule="2116")
        with pytest.raises(ValueError):
            run.advance(RuleState.COMMITTED)


def test_patch_record():
    patch = PatchRecord(tool_name="Sorald", diff="diff --git a/x b/x")
    assert patch.description == ""


class TestPullRequestText:
    def test_branch_name(self):
        assert build_branch_name("repairnator-patch", COMMIT, "2116") == "repairnator-patch-4f5c2a9e1b_2116"

    def test_branch_name_is_deterministic(self):
        assert build_branch_name("p", COMMIT, "S1234") == build_branch_name("p", COMMIT, "S1234")

    def test_branch_name_takes_exactly_ten_characters(self):
        name = build_branch_name("prefix", COMMIT, "R")
        assert name == f"prefix-{COMMIT[:10]}_R"
        assert len(name.split("-", 1)[1].split("_", 1)[0]) == 10

    def test_commit_message(self):
        assert build_commit_message("Sorald", "2116") == "Proposal for patching the Sorald rule 2116"

    def test_pr_text(self):
        text = build_pr_text("2116")
        assert rule_link("2116") == "https://rules.sonarsource.com/java/RSPEC-2116"
        assert "https://rules.sonarsource.com/java/RSPEC-2116" in text
        assert "'STOP'" in text
        assert PR_TITLE == "Fix Sorald violations"


class TestSettings:
    def test_sonar_rules_split(self):
        config = Settings(SONAR_RULES=" 2116, S1234 ,,4973")
        assert config.sonar_rules == ["2116", "S1234", "4973"]

    def test_defaults(self):
        config = Settings()
        assert config.REPAIR_MODE == "SNIPER"
        assert config.BRANCH_PREFIX == "repairnator-patch"
        assert config.SCRATCH_REPO_PATH == "tmp_repo"
