"""Tests for originating-branch resolution."""

import git

from conftest import commit_files
from soraldbot.services.branch_resolver import (
    BranchResolver,
    get_branch_of_commit,
    is_mainline,
    select_branch,
)


def test_commit_shared_with_feature_resolves_to_main(branched_repo):
    repo, commits = branched_repo

    resolution = BranchResolver(repo).resolve_originating_branch(commits["B"])

    assert resolution.found
    assert resolution.branch == "main"
    assert resolution.base_name == "main"
    assert resolution.containing == frozenset({"main", "feature"})


def test_feature_only_commit_resolves_to_feature(branched_repo):
    repo, commits = branched_repo

    resolution = BranchResolver(repo).resolve_originating_branch(commits["D"])

    assert resolution.branch == "feature"
    assert resolution.containing == frozenset({"feature"})


def test_main_only_commit(branched_repo):
    repo, commits = branched_repo

    resolution = BranchResolver(repo).resolve_originating_branch(commits["C"])

    assert resolution.branch == "main"
    assert resolution.containing == frozenset({"main"})


def test_abbreviated_commit_id(branched_repo):
    repo, commits = branched_repo

    assert BranchResolver(repo).resolve_originating_branch(commits["D"][:10]).branch == "feature"


def test_unknown_commit_is_not_found(branched_repo):
    repo, _ = branched_repo

    resolution = BranchResolver(repo).resolve_originating_branch("does-not-exist")

    assert not resolution.found
    assert resolution.branch is None
    assert resolution.containing == frozenset()


def test_commit_outside_every_branch_is_not_found(branched_repo):
    repo, _ = branched_repo
    repo.git.checkout("--detach")
    dangling = commit_files(repo, {"Dangling.java": "class Dangling {}\n"}, "dangling")
    repo.heads.main.checkout()

    assert not BranchResolver(repo).resolve_originating_branch(dangling.hexsha).found


def test_resolution_is_idempotent(branched_repo):
    repo, commits = branched_repo

    first = BranchResolver(repo).resolve_originating_branch(commits["A"])
    second = BranchResolver(repo).resolve_originating_branch(commits["A"])

    assert first == second
    assert first.branch == "main"


def test_remote_tracking_branches(branched_repo, tmp_path):
    origin, commits = branched_repo
    clone = git.Repo.clone_from(origin.working_dir, str(tmp_path / "clone"))
    try:
        resolver = BranchResolver(clone)

        feature = resolver.resolve_originating_branch(commits["D"])
        assert feature.branch == "origin/feature"
        assert feature.base_name == "feature"

        shared = resolver.resolve_originating_branch(commits["B"])
        assert shared.branch == "main"
        assert shared.containing == frozenset({"main", "origin/main", "origin/feature"})
    finally:
        clone.close()


def test_local_branches_only(branched_repo, tmp_path):
    origin, commits = branched_repo
    clone = git.Repo.clone_from(origin.working_dir, str(tmp_path / "clone"))
    try:
        resolution = BranchResolver(clone, include_remotes=False).resolve_originating_branch(commits["D"])
        assert not resolution.found
    finally:
        clone.close()


def test_get_branch_of_commit_opens_repository(branched_repo):
    repo, commits = branched_repo

    assert get_branch_of_commit(repo.working_dir, commits["B"]).branch == "main"


class TestSelection:
    def test_mainline_names(self):
        assert is_mainline("main")
        assert is_mainline("master")
        assert is_mainline("origin/main")
        assert is_mainline("upstream/master")
        assert not is_mainline("mainline")
        assert not is_mainline("domain")
        assert not is_mainline("feature")

    def test_mainline_wins(self):
        assert select_branch({"feature", "origin/main"}) == "origin/main"
        assert select_branch({"hotfix", "release/master"}) == "release/master"

    def test_unqualified_mainline_first(self):
        assert select_branch({"origin/main", "main", "feature"}) == "main"

    def test_no_mainline_is_deterministic(self):
        assert select_branch({"feature-b", "feature-a"}) == "feature-a"

    def test_empty(self):
        assert select_branch(set()) is None
