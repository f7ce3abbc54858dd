"""Post-deploy reachability checks."""

from __future__ import annotations

import logging

import requests

from hostdeploy.inputs import SshTarget
from hostdeploy.remote_scripts import validate_deployment_script
from hostdeploy.ssh import run_remote_script

logger = logging.getLogger("hostdeploy")


def public_url(host: str) -> str:
    return f"http://{host}/"


def check_public_endpoint(host: str, *, timeout: float = 10) -> bool:
    """Best-effort GET of the proxy from the operator's machine.

    Only warns on failure: a firewall in front of the host can legitimately
    block this while the on-host check passes.
    """
    url = public_url(host)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("Warning: could not reach %s from this machine: %s", url, exc)
        return False

    if not response.ok:
        logger.warning("Warning: %s answered with HTTP %s", url, response.status_code)
        return False

    logger.info("Application is reachable from this machine at %s", url)
    return True


def validate_deployment(target: SshTarget) -> None:
    """Authoritative check runs on the host; raises CalledProcessError on failure."""
    run_remote_script(target, validate_deployment_script())
    check_public_endpoint(target.host)
