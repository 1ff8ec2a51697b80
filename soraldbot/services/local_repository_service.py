"""
Local Repository Service
Git operations on the working clone of the target repository
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

import git

from soraldbot.core.config import Settings, settings as default_settings
from soraldbot.utils.logger import logger

PUSH_REMOTE_NAME = "sorald-push-remote"


class LocalRepositoryService:
    """Service for working-clone operations, every repository handle is closed before returning"""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.workspace_path = Path(self.settings.WORKSPACE_PATH)

    def get_workspace_path(self) -> Path:
        """Get the workspace directory, creating it on first use"""
        if not self.workspace_path.exists():
            self.workspace_path.mkdir(parents=True, exist_ok=True)
        return self.workspace_path

    def get_repository_path(self, name: Optional[str] = None) -> Path:
        return self.get_workspace_path() / (name or self.settings.REPO_DIR_NAME)

    def committer(self) -> git.Actor:
        return git.Actor(self.settings.GIT_COMMITTER_NAME, self.settings.GIT_COMMITTER_EMAIL)

    def ensure_clone(self, git_url: str, target_path: Path) -> Path:
        """
        Clone ``git_url`` into ``target_path`` unless a clone is already there

        Returns:
            Path to the clone
        """
        target_path = Path(target_path)
        if (target_path / ".git").exists():
            logger.info(f"Repository already cloned at {target_path}, fetching")
            with git.Repo(target_path) as repo:
                for remote in repo.remotes:
                    remote.fetch()
            return target_path

        logger.info(f"Cloning {git_url} to {target_path}")
        target_path.parent.mkdir(parents=True, exist_ok=True)
        with git.Repo.clone_from(git_url, str(target_path)):
            pass
        logger.info(f"Successfully cloned to {target_path}")
        return target_path

    def checkout_commit(self, repo_path: Path, commit_id: str) -> None:
        """Forced checkout of ``commit_id`` on a clean working tree"""
        with git.Repo(repo_path) as repo:
            repo.git.checkout("--force", commit_id)
            repo.git.clean("-fd")
        logger.info(f"Checked out {commit_id[:10]} in {repo_path}")

    def revert_changes(self, repo_path: Path) -> None:
        """Drop every uncommitted change in the working tree"""
        with git.Repo(repo_path) as repo:
            repo.git.checkout("--", ".")
            repo.git.clean("-fd")

    def modified_files(self, repo_path: Path) -> Set[str]:
        """Paths with unstaged or staged changes against HEAD, plus untracked files"""
        with git.Repo(repo_path) as repo:
            paths = set()
            for diff in repo.index.diff(None):
                paths.update(p for p in (diff.a_path, diff.b_path) if p)
            for diff in repo.index.diff(repo.head.commit):
                paths.update(p for p in (diff.a_path, diff.b_path) if p)
            paths.update(repo.untracked_files)
        return paths

    def touched_files(self, repo_path: Path, commit_id: str) -> Set[str]:
        """Files the commit changed relative to its first parent, every file for a root commit"""
        with git.Repo(repo_path) as repo:
            commit = repo.commit(commit_id)
            if not commit.parents:
                return {item.path for item in commit.tree.traverse() if item.type == "blob"}
            paths = set()
            for diff in commit.parents[0].diff(commit):
                paths.update(p for p in (diff.a_path, diff.b_path) if p)
        return paths

    def stage_and_commit(self, repo_path: Path, files: Iterable[str], message: str) -> str:
        """
        Stage exactly ``files`` (tracked files only, like ``git add --update``)
        and commit them.

        Returns:
            The new commit hexsha
        """
        files = sorted(files)
        with git.Repo(repo_path) as repo:
            repo.git.add("--update", "--", *files)
            actor = self.committer()
            commit = repo.index.commit(message, author=actor, committer=actor)
            logger.info(f"Committed {len(files)} file(s) as {commit.hexsha[:10]}: {message}")
            return commit.hexsha

    def create_branch_for_push(self, repo_path: Path, branch_name: str) -> str:
        """Create (or move) ``branch_name`` to the current HEAD commit"""
        with git.Repo(repo_path) as repo:
            head = repo.create_head(branch_name, repo.head.commit, force=True)
            logger.info(f"Created branch {head.name} at {head.commit.hexsha[:10]}")
            return head.name

    @contextmanager
    def _temp_remote(self, repo: git.Repo, url: str, name: str = PUSH_REMOTE_NAME) -> Iterator[git.Remote]:
        """
        Add a temporary remote for tokenized pushes, then remove it.
        NOTE: the URL may embed a token, never log it.
        """
        if name in [r.name for r in repo.remotes]:
            repo.delete_remote(name)
        remote = repo.create_remote(name, url)
        try:
            yield remote
        finally:
            repo.delete_remote(remote)

    def push_branch(self, repo_path: Path, remote_url: str, branch_name: str) -> None:
        with git.Repo(repo_path) as repo:
            with self._temp_remote(repo, remote_url) as remote:
                remote.push(refspec=f"refs/heads/{branch_name}:refs/heads/{branch_name}", force=True).raise_if_error()
        logger.info(f"Pushed branch {branch_name}")
