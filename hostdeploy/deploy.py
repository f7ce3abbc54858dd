#!/usr/bin/env python3
"""Deploy a containerized web app to a single Ubuntu host over SSH.

Stages, each a one-shot external command; the first failure aborts the run:

    collect inputs -> clone/update repo -> check SSH -> install Docker/nginx
    -> copy files -> build & run container -> configure nginx -> validate

Usage:
  host-deploy
  host-deploy --cleanup

Everything printed (including the output of git/ssh/scp) is appended to
`deploy_YYYYMMDD.log` in the working directory.

Security note: this script shells out to `git`, `ssh` and `scp`.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import subprocess
from pathlib import Path
from typing import Callable

from hostdeploy.inputs import (
    InputValidationError,
    collect_cleanup_inputs,
    collect_deploy_inputs,
)
from hostdeploy.remote_scripts import (
    REMOTE_APP_DIR,
    cleanup_script,
    configure_proxy_script,
    deploy_container_script,
    prepare_environment_script,
    reset_app_dir_command,
)
from hostdeploy.repository import clone_or_update, list_transfer_sources
from hostdeploy.run_log import StepLogger, configure_run_log, logged_prompt
from hostdeploy.ssh import check_connection, copy_to_remote, run_remote, run_remote_script
from hostdeploy.validation import validate_deployment

logger = logging.getLogger("hostdeploy")

BANNER = "====================================="


def _failure_exit_code(exc: subprocess.CalledProcessError) -> int:
    return exc.returncode if exc.returncode > 0 else 1


def run_cleanup(*, workdir: Path, prompt_fn: Callable[[str], str] | None = None) -> int:
    prompt_fn = logged_prompt(prompt_fn or input)
    logger.info("Running cleanup on remote server...")
    confirm = str(prompt_fn("Are you sure you want to remove all deployed resources? (y/n): ") or "").strip()
    if confirm != "y":
        logger.info("Cleanup aborted.")
        return 0

    try:
        target = collect_cleanup_inputs(repo_root=workdir, prompt_fn=prompt_fn)
    except InputValidationError as exc:
        logger.error(exc.format())
        return 1

    logger.info("Removing deployed resources from %s...", target.destination)
    run_remote_script(target, cleanup_script())
    return 0


def run_deploy(
    *,
    workdir: Path,
    prompt_fn: Callable[[str], str] | None = None,
    secret_prompt_fn: Callable[[str], str] | None = None,
) -> int:
    prompt_fn = logged_prompt(prompt_fn or input)
    secret_prompt_fn = logged_prompt(secret_prompt_fn or getpass.getpass, secret=True)
    steps = StepLogger()

    logger.info(BANNER)
    logger.info("Starting Deployment Script")
    logger.info(BANNER)

    steps.step("Collecting deployment parameters", icon="🧭")
    try:
        inputs = collect_deploy_inputs(repo_root=workdir, prompt_fn=prompt_fn, secret_prompt_fn=secret_prompt_fn)
    except InputValidationError as exc:
        logger.error(exc.format())
        return 1

    target = inputs.ssh
    steps.info(f"Repository: {inputs.repo_url} ({inputs.branch})")
    steps.info(f"Target: {target.destination}")
    steps.info(f"App port: {inputs.app_port}")

    steps.step("Fetching source code", icon="📥")
    repo_dir = clone_or_update(inputs, workdir=workdir)

    steps.step("Checking SSH connectivity", icon="🔐")
    if not check_connection(target):
        return 1

    steps.step(f"Preparing remote environment on {target.host}", icon="🛠️")
    run_remote_script(target, prepare_environment_script())

    steps.step("Transferring application files to remote server", icon="📦")
    run_remote(target, reset_app_dir_command())
    copy_to_remote(target, list_transfer_sources(repo_dir), REMOTE_APP_DIR)

    steps.step("Building and starting the container", icon="🏗️")
    run_remote_script(target, deploy_container_script(app_port=inputs.app_port))

    steps.step("Configuring Nginx as a reverse proxy", icon="🌐")
    run_remote_script(target, configure_proxy_script(server_name=target.host, app_port=inputs.app_port))

    steps.step("Validating deployment", icon="✅")
    validate_deployment(target)

    logger.info("Deployment completed successfully.")
    return 0


def main(argv: list[str] | None = None, workdir: Path | None = None) -> int:
    parser = argparse.ArgumentParser(description="Deploy a containerized web app to a remote host over SSH")
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Remove the deployed container, image, app directory and nginx site from the remote host",
    )
    args = parser.parse_args(argv)

    base = workdir or Path.cwd()
    log_path = configure_run_log(base)

    try:
        if args.cleanup:
            return run_cleanup(workdir=base)
        return run_deploy(workdir=base)
    except subprocess.CalledProcessError as exc:
        logger.error("Deployment failed. Check log file: %s", log_path)
        return _failure_exit_code(exc)
    except FileNotFoundError as exc:
        # Missing git/ssh/scp binary.
        logger.error("Deployment failed (%s). Check log file: %s", exc, log_path)
        return 1
    except Exception:
        logger.exception("Deployment failed. Check log file: %s", log_path)
        return 1


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
