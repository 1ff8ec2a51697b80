"""
Sorald Orchestrator
Coordinates the Sorald repair run on one target commit.

Workflow:
1. Build the target commit, make sure the working clone exists and resolve
   the branch the commit originally belonged to (the PR base)
2. For each configured rule, strictly one after the other:
   a. Check out the target commit on a clean working tree
   b. Ask Sorald which files it fixes for the rule
   c. Nothing fixed: move on to the next rule
   d. Otherwise re-apply the fix, commit exactly those files and diff the commit
   e. Notify the patch, push a dedicated branch to the fork, open the PR
3. The first error while processing a rule ends the whole run as skipped,
   except history traversal failures, which propagate
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import git
from git.exc import GitError
from pydantic import ValidationError

from soraldbot.core.config import Settings, settings as default_settings
from soraldbot.core.exceptions import (
    HistoryTraversalFailure,
    InitializationFailure,
    RepairEngineFailure,
)
from soraldbot.models import (
    PatchRecord,
    RepairRunResult,
    RuleResult,
    RuleRun,
    RuleState,
    StepStatus,
    TargetCommit,
)
from soraldbot.services.branch_resolver import BranchResolution, get_branch_of_commit
from soraldbot.services.github_service import GitHubService
from soraldbot.services.history_service import DiffComputer
from soraldbot.services.local_repository_service import LocalRepositoryService
from soraldbot.sorald_agent.callback import PatchCallback
from soraldbot.sorald_agent.pull_request import (
    PR_TITLE,
    TOOL_NAME,
    build_branch_name,
    build_commit_message,
    build_pr_text,
)
from soraldbot.sorald_agent.sorald_executor import SoraldAdapter
from soraldbot.utils.logger import logger
from soraldbot.utils.pipeline_logger import PipelineLogger

SKIP_MESSAGE = "Error while repairing with Sorald"


class SoraldOrchestrator:
    """
    Drives one repair run: one target commit, every configured rule.

    The working clone is a single shared checkout, so rules are never
    processed concurrently.
    """

    def __init__(
        self,
        commit_id: str,
        repo_slug: str,
        repo_url: Optional[str] = None,
        config: Optional[Settings] = None,
        repair_engine=None,
        github: Optional[GitHubService] = None,
        repository_service: Optional[LocalRepositoryService] = None,
        callback: Optional[PatchCallback] = None,
        pipeline_logger: Optional[PipelineLogger] = None,
        rules: Optional[List[str]] = None,
    ):
        self.settings = config or default_settings
        self.commit_id = commit_id
        self.repo_slug = repo_slug
        self.repo_url = repo_url
        self.rules = list(rules) if rules is not None else self.settings.sonar_rules
        self.mode = self.settings.REPAIR_MODE

        self.repository_service = repository_service or LocalRepositoryService(self.settings)
        self.repair_engine = repair_engine or SoraldAdapter(
            config=self.settings, repository_service=self.repository_service
        )
        self.github = github or GitHubService(self.settings)
        self.pipeline_logger = pipeline_logger or PipelineLogger(repo_slug)
        self.callback = callback or PatchCallback(self.pipeline_logger)

        self.repo_path: Path = self.repository_service.get_repository_path()
        self.target: Optional[TargetCommit] = None
        self.original_branch: Optional[BranchResolution] = None

    # ------------------------------------------------------------------
    # initialization
    # ------------------------------------------------------------------

    def _init(self) -> None:
        try:
            self.target = TargetCommit(
                commit_id=self.commit_id, repo_slug=self.repo_slug, repo_url=self.repo_url
            )
        except ValidationError as e:
            raise InitializationFailure(f"Invalid target commit: {e}") from e

        try:
            self.repository_service.ensure_clone(self.target.repo_url, self.repo_path)
            resolution = get_branch_of_commit(str(self.repo_path), self.target.commit_id)
        except (GitError, OSError, HistoryTraversalFailure) as e:
            raise InitializationFailure(f"Error while looking for the original branch: {e}") from e

        self.pipeline_logger.log_base_branch(resolution.branch, sorted(resolution.containing))
        if not resolution.found:
            raise InitializationFailure("The branch of the commit was not found")
        self.original_branch = resolution

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------

    def run(self) -> RepairRunResult:
        result = RepairRunResult()

        try:
            self._init()
        except InitializationFailure as e:
            self.pipeline_logger.log_error("initialization", str(e))
            return self._finish(result, StepStatus.SKIPPED, SKIP_MESSAGE)

        target = self.target
        result.base_branch = self.original_branch.branch
        logger.info(f"[SoraldOrchestrator] Working on: {target.commit_url} {target.commit_id}")
        self.pipeline_logger.log_input(target.commit_id, target.commit_url, self.rules, str(self.repo_path))

        for rule in self.rules:
            logger.info(f"[SoraldOrchestrator] Working on: {target.commit_url} {target.commit_id} {rule}")
            rule_run = RuleRun(rule=rule)
            result.rules.append(rule_run)
            try:
                self._process_rule(rule_run, result)
            except HistoryTraversalFailure as e:
                self.pipeline_logger.log_error("history_traversal", str(e))
                self._finish(result, StepStatus.FAILURE, str(e))
                raise
            except Exception as e:
                logger.error(f"[SoraldOrchestrator] Rule {rule} failed, aborting the run: {e}")
                self.pipeline_logger.log_error(f"rule_{rule}", str(e))
                return self._finish(result, StepStatus.SKIPPED, SKIP_MESSAGE)

        return self._finish(result, StepStatus.SUCCESS, f"Processed {len(self.rules)} rule(s)")

    def _finish(self, result: RepairRunResult, status: StepStatus, message: str) -> RepairRunResult:
        result.status = status
        result.message = message
        result.finished_at = datetime.utcnow()
        self.pipeline_logger.save_session_summary(status.value, message)
        logger.info(f"[SoraldOrchestrator] Run finished: {status.value} - {message}")
        return result

    def _advance(self, rule_run: RuleRun, state: RuleState) -> None:
        rule_run.advance(state)
        self.pipeline_logger.log_rule_state(
            rule_run.rule, state.value, [s.value for s in rule_run.history], rule_run.files
        )

    # ------------------------------------------------------------------
    # one rule
    # ------------------------------------------------------------------

    def _process_rule(self, rule_run: RuleRun, result: RepairRunResult) -> None:
        rule = rule_run.rule

        # each rule is applied to a fresh checkout, fixes of earlier rules do not carry over
        self.repository_service.checkout_commit(self.repo_path, self.target.commit_id)
        self._advance(rule_run, RuleState.CHECKED_OUT)

        rule_result = RuleResult.from_files(
            rule,
            self._call_engine(
                self.repair_engine.repair_and_return_modified_files,
                self.target, rule, self.settings.SCRATCH_REPO_PATH, self.mode,
            ),
        )
        rule_run.files = sorted(rule_result.files)
        self._advance(rule_run, RuleState.REPAIRED)

        if rule_result.is_empty:
            logger.info(f"[SoraldOrchestrator] No violation of rule {rule} fixed, skipping")
            self._advance(rule_run, RuleState.SKIPPED)
            return

        result.has_been_patched = True
        patch = self._apply_patches_and_build_record(rule_run, rule_result)
        result.patches.append(patch)

        self.callback.notify([patch], rule=rule)
        self._advance(rule_run, RuleState.NOTIFIED)

        self._push_and_create_pull_request(rule_run, result)

    def _call_engine(self, operation: Callable, *args):
        try:
            return operation(*args)
        except (RepairEngineFailure, HistoryTraversalFailure):
            raise
        except Exception as e:
            raise RepairEngineFailure(f"Repair engine failed: {e}") from e

    def _apply_patches_and_build_record(self, rule_run: RuleRun, rule_result: RuleResult) -> PatchRecord:
        rule = rule_run.rule
        self._call_engine(self.repair_engine.repair, rule, self.repo_path, self.mode)

        message = build_commit_message(TOOL_NAME, rule)
        rule_run.commit_sha = self.repository_service.stage_and_commit(
            self.repo_path, rule_result.files, message
        )
        self._advance(rule_run, RuleState.COMMITTED)

        with git.Repo(self.repo_path) as repo:
            diff = DiffComputer(repo).diff(rule_run.commit_sha)

        patch = PatchRecord(tool_name=TOOL_NAME, description=message, diff=diff)
        self._advance(rule_run, RuleState.PATCH_BUILT)
        return patch

    def _push_and_create_pull_request(self, rule_run: RuleRun, result: RepairRunResult) -> None:
        forked_repo = self.github.get_forked_repo_name(self.target.repo_slug)
        if forked_repo is None:
            return

        rule = rule_run.rule
        branch_name = build_branch_name(self.settings.BRANCH_PREFIX, self.target.commit_id, rule)
        rule_run.branch_name = self.repository_service.create_branch_for_push(self.repo_path, branch_name)
        self.repository_service.push_branch(self.repo_path, self.github.push_url(forked_repo), branch_name)

        url = None
        if self.settings.CREATE_PR:
            url = self.github.create_pull_request(
                repo_slug=self.target.repo_slug,
                base_branch=self.original_branch.base_name,
                head_owner=forked_repo.split("/", 1)[0],
                head_branch=branch_name,
                title=PR_TITLE,
                body=build_pr_text(rule),
            )
            rule_run.pull_request_url = url
            result.pull_request_urls.append(url)
            self._advance(rule_run, RuleState.PR_CREATED)

        self.pipeline_logger.log_pull_request(rule, branch_name, url)
