"""Deployment parameters: resolution, prompting and validation.

Resolution order for each value:
1. process environment (e.g. `DEPLOY_SERVER_IP`)
2. `.env.deploy` in the working directory (`.env.deploy.secrets` for the PAT)
3. interactive prompt

Nothing is persisted; values live for one run only.
"""

from __future__ import annotations

import getpass
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping

from dotenv import dotenv_values

DEFAULT_BRANCH = "main"

PromptFn = Callable[[str], str]


class DeployVar(str, Enum):
    REPO_URL = "DEPLOY_REPO_URL"
    GIT_PAT = "DEPLOY_GIT_PAT"
    BRANCH = "DEPLOY_BRANCH"
    SSH_USER = "DEPLOY_SSH_USER"
    SERVER_IP = "DEPLOY_SERVER_IP"
    SSH_KEY_PATH = "DEPLOY_SSH_KEY_PATH"
    APP_PORT = "DEPLOY_APP_PORT"


PROMPTS: dict[DeployVar, str] = {
    DeployVar.REPO_URL: "Enter Git repository URL: ",
    DeployVar.GIT_PAT: "Enter Git PAT (Personal Access Token): ",
    DeployVar.BRANCH: f"Enter branch to deploy (default: {DEFAULT_BRANCH}): ",
    DeployVar.SSH_USER: "Enter remote server username: ",
    DeployVar.SERVER_IP: "Enter remote server IP address: ",
    DeployVar.SSH_KEY_PATH: "Enter SSH key path: ",
    DeployVar.APP_PORT: "Enter application internal port (e.g., 8080): ",
}


class InputValidationError(ValueError):
    def __init__(self, *, context: str, problems: list[str]):
        super().__init__("; ".join(problems))
        self.context = context
        self.problems = problems

    def format(self) -> str:
        lines = [f"[inputs] validation failed: {self.context}"]
        for p in self.problems:
            lines.append(f"Error: {p}")
        return "\n".join(lines)


@dataclass(frozen=True)
class SshTarget:
    user: str
    host: str
    key_path: Path

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}"


@dataclass(frozen=True)
class DeployInputs:
    repo_url: str
    git_pat: str
    branch: str
    ssh: SshTarget
    app_port: int


def read_dotenv_key(*, dotenv_path: Path, key: str) -> str:
    if not dotenv_path.exists():
        return ""
    raw = dotenv_values(dotenv_path)
    return str(raw.get(key) or "").strip()


def read_deploy_key(*, repo_root: Path, key: str) -> str:
    return read_dotenv_key(dotenv_path=repo_root / ".env.deploy", key=key)


def read_deploy_secret_key(*, repo_root: Path, key: str) -> str:
    return read_dotenv_key(dotenv_path=repo_root / ".env.deploy.secrets", key=key)


def resolve_value(
    var: DeployVar,
    *,
    repo_root: Path,
    prompt_fn: PromptFn,
    secret: bool = False,
) -> str:
    value = str(os.getenv(var.value) or "").strip()
    if not value:
        if secret:
            value = read_deploy_secret_key(repo_root=repo_root, key=var.value)
        else:
            value = read_deploy_key(repo_root=repo_root, key=var.value)
    if not value:
        value = str(prompt_fn(PROMPTS[var]) or "").strip()
    return value


def _validate_ssh_fields(raw: Mapping[DeployVar, str], problems: list[str]) -> None:
    key_path = raw.get(DeployVar.SSH_KEY_PATH, "")
    if key_path and not Path(key_path).expanduser().is_file():
        problems.append(f"SSH key file not found at {key_path}")


def validate_deploy_inputs(raw: Mapping[DeployVar, str]) -> DeployInputs:
    """Check raw values and build `DeployInputs`.

    Missing values are reported first and on their own, matching the
    "All inputs are required" contract; file and port checks only run once
    every value is present.
    """
    required = [
        DeployVar.REPO_URL,
        DeployVar.GIT_PAT,
        DeployVar.SSH_USER,
        DeployVar.SERVER_IP,
        DeployVar.SSH_KEY_PATH,
        DeployVar.APP_PORT,
    ]
    if any(not str(raw.get(var) or "").strip() for var in required):
        raise InputValidationError(context="deploy", problems=["All inputs are required."])

    problems: list[str] = []
    _validate_ssh_fields(raw, problems)

    port_raw = raw[DeployVar.APP_PORT].strip()
    port = 0
    try:
        port = int(port_raw)
    except ValueError:
        problems.append(f"Application port must be an integer, got {port_raw!r}")
    else:
        if port < 1 or port > 65535:
            problems.append(f"Application port must be in range 1-65535, got {port}")

    if problems:
        raise InputValidationError(context="deploy", problems=problems)

    branch = str(raw.get(DeployVar.BRANCH) or "").strip() or DEFAULT_BRANCH
    return DeployInputs(
        repo_url=raw[DeployVar.REPO_URL].strip(),
        git_pat=raw[DeployVar.GIT_PAT].strip(),
        branch=branch,
        ssh=SshTarget(
            user=raw[DeployVar.SSH_USER].strip(),
            host=raw[DeployVar.SERVER_IP].strip(),
            key_path=Path(raw[DeployVar.SSH_KEY_PATH].strip()).expanduser(),
        ),
        app_port=port,
    )


def validate_ssh_inputs(raw: Mapping[DeployVar, str]) -> SshTarget:
    required = [DeployVar.SSH_USER, DeployVar.SERVER_IP, DeployVar.SSH_KEY_PATH]
    if any(not str(raw.get(var) or "").strip() for var in required):
        raise InputValidationError(context="cleanup", problems=["All inputs are required."])

    problems: list[str] = []
    _validate_ssh_fields(raw, problems)
    if problems:
        raise InputValidationError(context="cleanup", problems=problems)

    return SshTarget(
        user=raw[DeployVar.SSH_USER].strip(),
        host=raw[DeployVar.SERVER_IP].strip(),
        key_path=Path(raw[DeployVar.SSH_KEY_PATH].strip()).expanduser(),
    )


def collect_deploy_inputs(
    *,
    repo_root: Path,
    prompt_fn: PromptFn | None = None,
    secret_prompt_fn: PromptFn | None = None,
) -> DeployInputs:
    prompt_fn = prompt_fn or input
    secret_prompt_fn = secret_prompt_fn or getpass.getpass
    raw: dict[DeployVar, str] = {}
    for var in DeployVar:
        if var is DeployVar.GIT_PAT:
            raw[var] = resolve_value(var, repo_root=repo_root, prompt_fn=secret_prompt_fn, secret=True)
        else:
            raw[var] = resolve_value(var, repo_root=repo_root, prompt_fn=prompt_fn)
    return validate_deploy_inputs(raw)


def collect_cleanup_inputs(*, repo_root: Path, prompt_fn: PromptFn | None = None) -> SshTarget:
    prompt_fn = prompt_fn or input
    raw: dict[DeployVar, str] = {}
    for var in (DeployVar.SSH_USER, DeployVar.SERVER_IP, DeployVar.SSH_KEY_PATH):
        raw[var] = resolve_value(var, repo_root=repo_root, prompt_fn=prompt_fn)
    return validate_ssh_inputs(raw)
