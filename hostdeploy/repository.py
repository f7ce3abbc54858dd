"""Clone or update the application repository on the operator's machine."""

from __future__ import annotations

import logging
from pathlib import Path

from hostdeploy.inputs import DeployInputs
from hostdeploy.process import run_logged

logger = logging.getLogger("hostdeploy")


def repo_name_from_url(repo_url: str) -> str:
    name = repo_url.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def authenticated_clone_url(repo_url: str, git_pat: str) -> str:
    # https://github.com/o/r.git -> https://<PAT>@github.com/o/r.git
    rest = repo_url.removeprefix("https://")
    return f"https://{git_pat}@{rest}"


def build_git_clone_cmd(*, clone_url: str, branch: str, dest: Path) -> list[str]:
    return ["git", "clone", "-b", branch, clone_url, str(dest)]


def build_git_pull_cmd(*, repo_dir: Path, branch: str) -> list[str]:
    return ["git", "-C", str(repo_dir), "pull", "origin", branch]


def clone_or_update(inputs: DeployInputs, *, workdir: Path) -> Path:
    """Return the local checkout, pulling `inputs.branch` if it already exists."""
    repo_name = repo_name_from_url(inputs.repo_url)
    repo_dir = workdir / repo_name

    if repo_dir.is_dir():
        logger.info("Repository already exists. Pulling latest changes.")
        run_logged(build_git_pull_cmd(repo_dir=repo_dir, branch=inputs.branch), secrets=[inputs.git_pat])
    else:
        clone_url = authenticated_clone_url(inputs.repo_url, inputs.git_pat)
        run_logged(
            build_git_clone_cmd(clone_url=clone_url, branch=inputs.branch, dest=repo_dir),
            secrets=[inputs.git_pat],
        )

    logger.info("Repository %s is ready on branch %s.", repo_name, inputs.branch)
    return repo_dir


def list_transfer_sources(repo_dir: Path) -> list[Path]:
    """Top-level entries of the checkout, skipping dotfiles like a shell `./*`."""
    return sorted(p for p in repo_dir.iterdir() if not p.name.startswith("."))
