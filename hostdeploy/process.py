"""Run external commands and mirror their output into the run log.

Every command the deploy runs goes through `run_logged`, so stdout and stderr
of `git`, `ssh` and `scp` all end up in the dated log file.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Iterable

logger = logging.getLogger("hostdeploy")


def redact(text: str, secrets: Iterable[str]) -> str:
    out = text
    for secret in secrets:
        if secret:
            out = out.replace(secret, "***")
    return out


def format_cmd(cmd: list[str], *, secrets: Iterable[str] = ()) -> str:
    return redact(shlex.join(cmd), secrets)


def run_logged(
    cmd: list[str],
    *,
    input_text: str | None = None,
    check: bool = True,
    secrets: Iterable[str] = (),
) -> int:
    """Run `cmd`, streaming merged stdout/stderr line by line into the logger.

    `input_text` is written to the child's stdin (used to feed remote bash
    scripts to `ssh ... bash -s`). Any value in `secrets` is masked in the
    logged command line, in the command output and in the raised error.

    Raises subprocess.CalledProcessError on non-zero exit when `check` is set.
    """
    secrets = [s for s in secrets if s]
    logger.debug("$ %s", format_cmd(cmd, secrets=secrets))

    with subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as proc:
        if input_text is not None and proc.stdin is not None:
            proc.stdin.write(input_text)
            proc.stdin.close()
        for line in proc.stdout or ():
            logger.info(redact(line.rstrip("\n"), secrets))
        returncode = proc.wait()

    if check and returncode != 0:
        raise subprocess.CalledProcessError(returncode, format_cmd(cmd, secrets=secrets))
    return returncode
