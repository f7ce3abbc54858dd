from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path

import pytest

from hostdeploy.remote_scripts import (
    NGINX_SITE_AVAILABLE,
    cleanup_script,
    configure_proxy_script,
    deploy_container_script,
    prepare_environment_script,
    render_nginx_site_config,
    reset_app_dir_command,
    validate_deployment_script,
)


def test_prepare_environment_script_guards_every_install():
    out = prepare_environment_script()
    assert out.startswith("set -e\n")
    assert "if ! command -v docker &> /dev/null; then" in out
    assert "if ! command -v nginx &> /dev/null; then" in out
    assert 'echo "Docker already installed."' in out
    assert 'echo "Nginx already installed."' in out
    # Package installs only happen inside the guarded branches.
    for line in out.splitlines():
        if "apt-get install" in line:
            assert line.startswith("  ")


def test_prepare_environment_script_enables_both_services():
    out = prepare_environment_script()
    for service in ("docker", "nginx"):
        assert f"sudo systemctl enable {service}" in out
        assert f"sudo systemctl start {service}" in out


def test_reset_app_dir_command():
    assert reset_app_dir_command() == "rm -rf ~/app && mkdir -p ~/app"


def test_deploy_container_script_maps_port_and_replaces_container():
    out = deploy_container_script(app_port=5000)
    assert "cd ~/app" in out
    assert "sudo docker build -t flask_app ." in out
    assert "sudo docker rm -f flask_app" in out
    assert "sudo docker run -d --name flask_app -p 5000:5000 flask_app" in out
    assert out.index("docker rm -f") < out.index("docker run")


def test_render_nginx_site_config_proxies_to_app_port():
    out = render_nginx_site_config(server_name="203.0.113.10", app_port=5000)
    assert "listen 80;" in out
    assert "server_name 203.0.113.10;" in out
    assert "proxy_pass http://localhost:5000;" in out
    assert "proxy_set_header Host $host;" in out
    assert "proxy_set_header X-Forwarded-Proto $scheme;" in out


def test_configure_proxy_script_writes_enables_and_restarts():
    out = configure_proxy_script(server_name="203.0.113.10", app_port=5000)
    config = render_nginx_site_config(server_name="203.0.113.10", app_port=5000)
    assert shlex.quote(config) in out
    assert f"sudo tee {NGINX_SITE_AVAILABLE}" in out
    assert f"sudo ln -sf {NGINX_SITE_AVAILABLE} /etc/nginx/sites-enabled/" in out
    assert out.index("sudo nginx -t") < out.index("sudo systemctl restart nginx")


def test_validate_deployment_script_fails_without_200():
    out = validate_deployment_script()
    assert 'sudo docker ps --filter "name=flask_app"' in out
    assert "curl -s --head http://localhost" in out
    assert "Error: Application not responding on port 80." in out
    assert "exit 1" in out


def test_cleanup_script_tolerates_missing_resources():
    out = cleanup_script()
    assert "sudo docker stop flask_app || true" in out
    assert "sudo docker rm flask_app || true" in out
    assert "sudo docker rmi flask_app || true" in out
    assert "sudo rm -rf ~/app" in out
    assert "sudo rm -f /etc/nginx/sites-enabled/flask_app /etc/nginx/sites-available/flask_app" in out
    assert "sudo systemctl reload nginx" in out


def _run_with_stub_commands(tmp_path: Path, script: str, commands: list[str]) -> tuple[subprocess.CompletedProcess, list[str]]:
    """Run `script` under bash with only the given commands on PATH, each recording its argv."""
    bash = shutil.which("bash")
    if bash is None:
        pytest.skip("bash not available")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    calls = tmp_path / "calls.log"
    for name in commands:
        stub = bin_dir / name
        stub.write_text('#!/bin/sh\necho "${0##*/} $*" >> "$CALLS_LOG"\n', encoding="utf-8")
        stub.chmod(0o755)
    proc = subprocess.run(
        [bash, "-s"],
        input=script,
        env={"PATH": str(bin_dir), "CALLS_LOG": str(calls)},
        capture_output=True,
        text=True,
    )
    recorded = calls.read_text(encoding="utf-8").splitlines() if calls.exists() else []
    return proc, recorded


def test_prepare_environment_script_rerun_skips_installs(tmp_path: Path):
    proc, recorded = _run_with_stub_commands(
        tmp_path, prepare_environment_script(), ["sudo", "docker", "nginx", "curl"]
    )
    assert proc.returncode == 0, proc.stderr
    assert "Docker already installed." in proc.stdout
    assert "Nginx already installed." in proc.stdout
    assert "Remote environment ready." in proc.stdout
    assert recorded == ["sudo apt-get update -y", "docker --version"]


def test_prepare_environment_script_installs_only_missing_nginx(tmp_path: Path):
    proc, recorded = _run_with_stub_commands(tmp_path, prepare_environment_script(), ["sudo", "docker"])
    assert proc.returncode == 0, proc.stderr
    assert "Docker already installed." in proc.stdout
    assert "Nginx already installed." not in proc.stdout
    assert "sudo apt-get install -y nginx" in recorded
    assert "sudo systemctl start nginx" in recorded
    assert not any("docker-ce" in line for line in recorded)
