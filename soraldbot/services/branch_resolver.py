"""
Branch Resolver
Guesses which branch a commit originally belonged to.

Git history does not record branch ownership once branches diverge and
merge, so the answer is a heuristic: every branch whose history contains
the commit is a candidate, and main-line names (main, master, or
remote-qualified variants such as origin/main) win over the rest.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, Optional, Set, Tuple

import git
from git.exc import BadName, BadObject, GitCommandError

from soraldbot.core.exceptions import HistoryTraversalFailure
from soraldbot.utils.logger import logger

MAINLINE_NAMES = ("main", "master")


@dataclass(frozen=True)
class BranchResolution:
    """Found(branch) or NotFound, with the candidates that were considered"""
    branch: Optional[str] = None
    base_name: Optional[str] = None
    containing: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def found(self) -> bool:
        return self.branch is not None

    @classmethod
    def not_found(cls) -> "BranchResolution":
        return cls()


def is_mainline(branch_name: str) -> bool:
    return any(
        branch_name == name or branch_name.endswith(f"/{name}")
        for name in MAINLINE_NAMES
    )


def select_branch(containing: Set[str]) -> Optional[str]:
    """
    Pick one branch out of the containing set.

    Any main-line branch is preferred. The contract leaves the choice among
    ties open; unqualified names go first, then lexical order, so the same
    set always yields the same branch.
    """
    if not containing:
        return None
    ordered = sorted(containing, key=lambda name: (name.count("/"), name))
    mainline = [name for name in ordered if is_mainline(name)]
    return mainline[0] if mainline else ordered[0]


class BranchResolver:
    """Maps a commit to the branch it most likely came from"""

    def __init__(self, repo: git.Repo, include_remotes: bool = True):
        self.repo = repo
        self.include_remotes = include_remotes
        # reachable commit sets, keyed by branch tip
        self._history_cache: Dict[str, FrozenSet[str]] = {}

    def branches(self) -> Iterator[Tuple[str, str, str]]:
        """Yield (display name, PR base name, tip hexsha) for every branch"""
        for head in self.repo.heads:
            yield head.name, head.name, head.commit.hexsha

        if not self.include_remotes:
            return
        for remote in self.repo.remotes:
            for ref in remote.refs:
                # origin/HEAD is a symbolic pointer to another remote branch
                if ref.remote_head == "HEAD":
                    continue
                yield ref.name, ref.remote_head, ref.commit.hexsha

    def history(self, tip: str) -> FrozenSet[str]:
        """Every commit reachable from ``tip``"""
        if tip not in self._history_cache:
            try:
                self._history_cache[tip] = frozenset(c.hexsha for c in self.repo.iter_commits(tip))
            except (GitCommandError, BadObject, ValueError) as e:
                raise HistoryTraversalFailure(f"Failed to walk history of {tip}: {e}") from e
        return self._history_cache[tip]

    def containing_branches(self, commit_sha: str) -> Dict[str, str]:
        """Branches whose history contains the commit, mapped to their PR base names"""
        containing = {}
        for name, base_name, tip in self.branches():
            if commit_sha in self.history(tip):
                containing[name] = base_name
        return containing

    def resolve_originating_branch(self, commit_id: str) -> BranchResolution:
        try:
            commit_sha = self.repo.commit(commit_id).hexsha
        except (BadName, BadObject, ValueError, GitCommandError) as e:
            logger.error(f"[BranchResolver] Commit {commit_id} does not resolve: {e}")
            return BranchResolution.not_found()

        containing = self.containing_branches(commit_sha)
        if not containing:
            logger.error(f"[BranchResolver] The branch of commit {commit_id} was not found")
            return BranchResolution.not_found()

        selected = select_branch(set(containing))
        if len(containing) > 1:
            logger.info(f"[BranchResolver] {commit_id[:10]} is contained in {sorted(containing)}, selected {selected}")
        else:
            logger.info(f"[BranchResolver] {commit_id[:10]} belongs to {selected}")

        return BranchResolution(
            branch=selected,
            base_name=containing[selected],
            containing=frozenset(containing),
        )


def get_branch_of_commit(repo_path: str, commit_id: str) -> BranchResolution:
    """Open the repository, resolve the commit's branch and close it again"""
    with git.Repo(repo_path) as repo:
        return BranchResolver(repo).resolve_originating_branch(commit_id)
