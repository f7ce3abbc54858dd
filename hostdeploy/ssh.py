"""Command builders for the `ssh` and `scp` clients.

All protocol work is delegated to OpenSSH; this module only assembles argv
lists and runs them through `run_logged`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hostdeploy.inputs import SshTarget
from hostdeploy.process import run_logged

logger = logging.getLogger("hostdeploy")

CONNECT_TIMEOUT_SECONDS = 10


def ssh_options(target: SshTarget, *, connect_timeout: int | None = None) -> list[str]:
    opts = ["-i", str(target.key_path)]
    if connect_timeout is not None:
        opts.extend(["-o", f"ConnectTimeout={connect_timeout}"])
    opts.extend(["-o", "StrictHostKeyChecking=no"])
    return opts


def build_ssh_cmd(*, target: SshTarget, remote_command: str, connect_timeout: int | None = None) -> list[str]:
    return ["ssh", *ssh_options(target, connect_timeout=connect_timeout), target.destination, remote_command]


def build_ssh_script_cmd(*, target: SshTarget) -> list[str]:
    # Script body is fed on stdin.
    return ["ssh", *ssh_options(target), target.destination, "bash -s"]


def build_scp_cmd(*, target: SshTarget, sources: list[Path], remote_dir: str) -> list[str]:
    dest = f"{target.destination}:{remote_dir.rstrip('/')}/"
    return ["scp", *ssh_options(target), "-r", *[str(p) for p in sources], dest]


def build_ssh_connectivity_cmd(*, target: SshTarget) -> list[str]:
    return build_ssh_cmd(
        target=target,
        remote_command="echo SSH connection successful",
        connect_timeout=CONNECT_TIMEOUT_SECONDS,
    )


def check_connection(target: SshTarget) -> bool:
    logger.info("Checking SSH connection to %s...", target.destination)
    code = run_logged(build_ssh_connectivity_cmd(target=target), check=False)
    if code != 0:
        logger.error("Error: Unable to establish SSH connection to %s", target.destination)
        return False
    logger.info("SSH connection established.")
    return True


def run_remote(target: SshTarget, remote_command: str) -> None:
    run_logged(build_ssh_cmd(target=target, remote_command=remote_command))


def run_remote_script(target: SshTarget, script: str) -> None:
    run_logged(build_ssh_script_cmd(target=target), input_text=script)


def copy_to_remote(target: SshTarget, sources: list[Path], remote_dir: str) -> None:
    if not sources:
        logger.warning("Nothing to transfer to %s:%s", target.destination, remote_dir)
        return
    run_logged(build_scp_cmd(target=target, sources=sources, remote_dir=remote_dir))
