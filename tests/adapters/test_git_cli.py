from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest

from prflow.adapters.git_cli import GitCli
from prflow.domain.errors import ExternalToolError


@pytest.fixture(autouse=True)
def git_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in {
        "GIT_AUTHOR_NAME": "CI",
        "GIT_AUTHOR_EMAIL": "ci@example.com",
        "GIT_COMMITTER_NAME": "CI",
        "GIT_COMMITTER_EMAIL": "ci@example.com",
    }.items():
        monkeypatch.setenv(key, value)


def _git(root: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=root, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    return result.stdout.strip()


def _init_repo(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    _git(root, "init", "-b", "main")
    (root / "README.md").write_text("# Widgets\n", encoding="utf-8")
    _git(root, "add", ".")
    _git(root, "commit", "-m", "chore: bootstrap")
    return root


@pytest.fixture()
def cloned(tmp_path: Path) -> tuple[Path, Path]:
    seed = _init_repo(tmp_path / "seed")
    remote = tmp_path / "remote.git"
    subprocess.run(["git", "init", "--bare", "-b", "main", str(remote)], check=True, stdout=subprocess.PIPE)
    _git(seed, "remote", "add", "origin", str(remote))
    _git(seed, "push", "origin", "main")
    clone = tmp_path / "clone"
    subprocess.run(["git", "clone", str(remote), str(clone)], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    return seed, clone


def test_branch_and_status(tmp_path: Path) -> None:
    root = _init_repo(tmp_path / "repo")
    git = GitCli(root)
    assert git.is_repository()
    assert git.current_branch() == "main"
    assert git.status() == ""
    assert git.is_working_tree_clean()

    (root / "notes.txt").write_text("draft\n", encoding="utf-8")
    assert "?? notes.txt" in git.status()
    assert not git.is_working_tree_clean()


def test_undecodable_output_is_replaced(tmp_path: Path) -> None:
    root = _init_repo(tmp_path / "repo")
    _git(root, "config", "core.quotePath", "false")
    (root / os.fsdecode(b"caf\xff.txt")).write_text("x\n", encoding="utf-8")

    status = GitCli(root).status()

    assert "?? caf\ufffd.txt" in status


def test_plain_directory_is_not_a_repository(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    assert not GitCli(plain).is_repository()
    assert not GitCli(tmp_path / "missing").is_repository()


def test_primary_branch_without_remote_checks_local_branches(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    root.mkdir()
    _git(root, "init", "-b", "master")
    (root / "a.txt").write_text("a\n", encoding="utf-8")
    _git(root, "add", ".")
    _git(root, "commit", "-m", "init")
    assert GitCli(root, fallback_primary="trunk").primary_branch_name() == "master"


def test_primary_branch_from_origin_head(cloned: tuple[Path, Path]) -> None:
    _, clone = cloned
    assert GitCli(clone, fallback_primary="trunk").primary_branch_name() == "main"


def test_checkout_new_branch_and_empty_commit(tmp_path: Path) -> None:
    root = _init_repo(tmp_path / "repo")
    git = GitCli(root)
    git.checkout("sta-1-fix-login", create=True, start_point="main")
    git.commit("STA-1: Fix login", allow_empty=True)

    assert git.current_branch() == "sta-1-fix-login"
    assert _git(root, "log", "-1", "--format=%s") == "STA-1: Fix login"
    assert _git(root, "rev-list", "--count", "HEAD") == "2"


def test_failures_carry_git_diagnostic(tmp_path: Path) -> None:
    git = GitCli(_init_repo(tmp_path / "repo"))
    with pytest.raises(ExternalToolError) as exc_info:
        git.checkout("does-not-exist")
    error = exc_info.value
    assert error.tool == "git checkout"
    assert error.returncode and error.returncode != 0
    assert "does-not-exist" in error.diagnostic


def test_push_fetch_and_pull(cloned: tuple[Path, Path]) -> None:
    seed, clone = cloned
    git = GitCli(clone)
    assert git.remote_url().endswith("remote.git")

    git.checkout("feature/x", create=True)
    git.commit("feat: x", allow_empty=True)
    git.push("feature/x", set_upstream=True)
    assert _git(clone, "rev-parse", "--abbrev-ref", "feature/x@{upstream}") == "origin/feature/x"

    (seed / "CHANGELOG.md").write_text("- x\n", encoding="utf-8")
    _git(seed, "add", ".")
    _git(seed, "commit", "-m", "docs: changelog")
    _git(seed, "push", "origin", "main")

    git.checkout("main")
    git.fetch()
    summary = git.pull()
    assert "CHANGELOG.md" in summary or "Fast-forward" in summary
    assert (clone / "CHANGELOG.md").exists()
    assert "Already up to date" in git.pull()
