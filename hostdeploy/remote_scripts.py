"""Bash scripts executed on the target host through `ssh ... bash -s`."""

from __future__ import annotations

import shlex
from textwrap import dedent

APP_NAME = "flask_app"
REMOTE_APP_DIR = "~/app"
NGINX_SITE_AVAILABLE = f"/etc/nginx/sites-available/{APP_NAME}"
NGINX_SITE_ENABLED = f"/etc/nginx/sites-enabled/{APP_NAME}"


def prepare_environment_script() -> str:
    """Install Docker and nginx only when missing, then enable both services."""
    return dedent(
        """\
        set -e
        sudo apt-get update -y

        if ! command -v docker &> /dev/null; then
          sudo apt-get install -y ca-certificates curl gnupg lsb-release
          sudo mkdir -p /etc/apt/keyrings
          curl -fsSL https://download.docker.com/linux/ubuntu/gpg | sudo gpg --dearmor --yes -o /etc/apt/keyrings/docker.gpg
          echo "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.gpg] \\
          https://download.docker.com/linux/ubuntu $(lsb_release -cs) stable" | \\
          sudo tee /etc/apt/sources.list.d/docker.list > /dev/null
          sudo apt-get update -y
          sudo apt-get install -y docker-ce docker-ce-cli containerd.io docker-buildx-plugin docker-compose-plugin
          sudo systemctl enable docker
          sudo systemctl start docker
        else
          echo "Docker already installed."
        fi

        docker --version

        if ! command -v nginx &> /dev/null; then
          sudo apt-get install -y nginx
          sudo systemctl enable nginx
          sudo systemctl start nginx
        else
          echo "Nginx already installed."
        fi

        echo "Remote environment ready."
        """
    )


def reset_app_dir_command() -> str:
    return f"rm -rf {REMOTE_APP_DIR} && mkdir -p {REMOTE_APP_DIR}"


def deploy_container_script(*, app_port: int) -> str:
    port = int(app_port)
    return dedent(
        f"""\
        set -e
        cd {REMOTE_APP_DIR}

        sudo docker build -t {APP_NAME} .
        sudo docker rm -f {APP_NAME} >/dev/null 2>&1 || true
        sudo docker run -d --name {APP_NAME} -p {port}:{port} {APP_NAME}

        echo "Container {APP_NAME} is running on port {port}."
        """
    )


def render_nginx_site_config(*, server_name: str, app_port: int) -> str:
    return dedent(
        f"""\
        server {{
            listen 80;
            server_name {server_name};

            location / {{
                proxy_pass http://localhost:{int(app_port)};
                proxy_set_header Host $host;
                proxy_set_header X-Real-IP $remote_addr;
                proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
                proxy_set_header X-Forwarded-Proto $scheme;
            }}
        }}
        """
    )


def configure_proxy_script(*, server_name: str, app_port: int) -> str:
    config = render_nginx_site_config(server_name=server_name, app_port=app_port)
    return (
        "set -e\n"
        f"printf '%s' {shlex.quote(config)} | sudo tee {NGINX_SITE_AVAILABLE} > /dev/null\n"
        f"sudo ln -sf {NGINX_SITE_AVAILABLE} /etc/nginx/sites-enabled/\n"
        "sudo nginx -t\n"
        "sudo systemctl restart nginx\n"
    )


def validate_deployment_script() -> str:
    return dedent(
        f"""\
        set -e
        sudo docker ps --filter "name={APP_NAME}"
        if curl -s --head http://localhost | grep "200 OK" > /dev/null; then
          echo "Application is running and reachable through Nginx."
        else
          echo "Error: Application not responding on port 80."
          exit 1
        fi
        """
    )


def cleanup_script() -> str:
    """Tear down every resource the deploy creates; absent resources are fine."""
    return dedent(
        f"""\
        echo "Removing Docker containers and Nginx configuration..."
        sudo docker stop {APP_NAME} || true
        sudo docker rm {APP_NAME} || true
        sudo docker rmi {APP_NAME} || true
        sudo rm -rf {REMOTE_APP_DIR}
        sudo rm -f {NGINX_SITE_ENABLED} {NGINX_SITE_AVAILABLE}
        sudo systemctl reload nginx
        echo "Cleanup complete."
        """
    )
