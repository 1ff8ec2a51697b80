from pathlib import Path
from typing import Dict

import git
import pytest

from soraldbot.core.config import Settings

ACTOR = git.Actor("Test User", "test@example.com")


def init_repo(path: Path) -> git.Repo:
    repo = git.Repo.init(path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
    return repo


def commit_files(repo: git.Repo, files: Dict[str, str], message: str) -> git.Commit:
    for filename, content in files.items():
        path = Path(repo.working_dir) / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    repo.index.add(list(files))
    return repo.index.commit(message, author=ACTOR, committer=ACTOR)


def rename_current_branch(repo: git.Repo, name: str) -> None:
    # git's default initial branch name depends on the host configuration
    repo.git.branch("-M", name)


@pytest.fixture
def repo(tmp_path):
    repo = init_repo(tmp_path / "repo")
    yield repo
    repo.close()


@pytest.fixture
def branched_repo(tmp_path):
    """
    A -> B -> C on main, B -> D on feature; main is checked out.
    Yields the repository and the commit hexshas by letter.
    """
    repo = init_repo(tmp_path / "origin")
    a = commit_files(repo, {"Foo.java": "class Foo {}\n", "Bar.txt": "bar\n", "Baz.java": "class Baz {}\n"}, "A")
    rename_current_branch(repo, "main")
    b = commit_files(repo, {"Foo.java": "class Foo {\n    int x;\n}\n"}, "B")
    feature = repo.create_head("feature", b)
    c = commit_files(repo, {"Bar.txt": "bar\nbar\n"}, "C")

    feature.checkout()
    d = commit_files(repo, {"Feature.java": "class Feature {}\n"}, "D")
    repo.heads.main.checkout()

    commits = {"A": a.hexsha, "B": b.hexsha, "C": c.hexsha, "D": d.hexsha}
    yield repo, commits
    repo.close()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        WORKSPACE_PATH=str(tmp_path / "workspace"),
        PIPELINE_LOG_PATH=str(tmp_path / "logs"),
        SONAR_RULES="S1234",
        CREATE_PR=True,
        FORK_REPO=True,
        GITHUB_TOKEN="test-token",
    )
