"""
History Service
Walks commit ancestry, snapshots trees and renders the diff of a commit
against its predecessor for pull request bodies.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Union

import git
from git.exc import BadName, BadObject, GitCommandError

from soraldbot.core.exceptions import HistoryTraversalFailure
from soraldbot.utils.logger import logger

START_OF_REPO = "Start of repo"

CommitLike = Union[str, git.Commit]


class TreeEntry(NamedTuple):
    hexsha: str
    mode: int


@dataclass(frozen=True)
class TreeSnapshot:
    """Full path -> blob mapping of the working tree at one commit"""
    commit_sha: str
    entries: Mapping[str, TreeEntry] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        # snapshots compare by content, not by the commit they came from
        if not isinstance(other, TreeSnapshot):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self) -> int:
        return hash(frozenset(self.entries.items()))

    def __len__(self) -> int:
        return len(self.entries)

    def paths(self) -> List[str]:
        return sorted(self.entries)


def _resolve_commit(repo: git.Repo, commit: CommitLike) -> git.Commit:
    if isinstance(commit, git.Commit):
        return commit
    try:
        return repo.commit(commit)
    except (BadName, BadObject, ValueError, GitCommandError) as e:
        raise HistoryTraversalFailure(f"Cannot resolve commit {commit!r}: {e}") from e


class HistoryWalker:
    """Finds the commit visited right after a given one in an ancestor walk"""

    def __init__(self, repo: git.Repo):
        self.repo = repo

    def previous_commit(self, commit: CommitLike) -> Optional[git.Commit]:
        """
        Walk ancestors starting at ``commit`` (visited first) and return the
        next commit of the walk, or None when ``commit`` is a root commit.
        """
        start = _resolve_commit(self.repo, commit)
        try:
            walk = self.repo.iter_commits(start.hexsha, max_count=2)
            for position, rev in enumerate(walk):
                if position == 1:
                    return rev
        except (GitCommandError, BadObject, ValueError) as e:
            raise HistoryTraversalFailure(f"Failed to walk history from {start.hexsha}: {e}") from e
        return None


class TreeSnapshotResolver:
    """Builds a TreeSnapshot for a commit id"""

    def __init__(self, repo: git.Repo):
        self.repo = repo

    def snapshot(self, commit: CommitLike) -> TreeSnapshot:
        resolved = _resolve_commit(self.repo, commit)
        entries = {}
        try:
            for item in resolved.tree.traverse():
                # sub-trees are flattened, submodules are not part of the snapshot
                if item.type != "blob":
                    continue
                entries[item.path] = TreeEntry(item.hexsha, item.mode)
        except (BadObject, ValueError, OSError) as e:
            raise HistoryTraversalFailure(f"Failed to read tree of {resolved.hexsha}: {e}") from e
        return TreeSnapshot(commit_sha=resolved.hexsha, entries=MappingProxyType(entries))


class DiffComputer:
    """Renders the diff between a commit and its predecessor as a git patch"""

    def __init__(self, repo: git.Repo):
        self.repo = repo
        self.walker = HistoryWalker(repo)
        self.resolver = TreeSnapshotResolver(repo)

    def diff(self, new_commit: CommitLike) -> str:
        """
        Diff ``new_commit`` against the previous commit of its history walk.

        Returns "Start of repo" for root commits and an empty string when both
        trees are identical.
        """
        new = _resolve_commit(self.repo, new_commit)
        old = self.walker.previous_commit(new)
        if old is None:
            logger.info(f"[DiffComputer] {new.hexsha[:10]} has no predecessor")
            return START_OF_REPO

        if self.resolver.snapshot(old) == self.resolver.snapshot(new):
            return ""

        try:
            return self.repo.git.diff(
                "--no-color", "--no-ext-diff", "--src-prefix=a/", "--dst-prefix=b/",
                old.hexsha, new.hexsha,
            )
        except GitCommandError as e:
            raise HistoryTraversalFailure(f"Failed to diff {old.hexsha} and {new.hexsha}: {e}") from e
