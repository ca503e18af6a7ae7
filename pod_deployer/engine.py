"""Local container engine access through the podman CLI."""

import json
import logging
import subprocess
from typing import Any

from .exceptions import EngineError
from .models import ContainerRef

logger = logging.getLogger(__name__)

COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


class PodmanEngine:
    """Reads containers and generates kube manifests with ``podman``."""

    def __init__(self, binary: str = "podman"):
        """
        Initialize engine.

        Args:
            binary: Path or name of the podman executable
        """
        self.binary = binary

    def _run(self, args: list[str]) -> str:
        cmd = [self.binary, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise EngineError(f"{self.binary} executable not found") from e
        except subprocess.CalledProcessError as e:
            raise EngineError(
                f"{' '.join(cmd)} failed with exit code {e.returncode}: {e.stderr.strip()}"
            ) from e
        return result.stdout

    def _list(self, filter_expr: str) -> list[ContainerRef]:
        output = self._run(["ps", "--all", "--filter", filter_expr, "--format", "json"])
        try:
            entries: list[dict[str, Any]] = json.loads(output or "[]")
        except json.JSONDecodeError as e:
            raise EngineError(f"Unexpected container listing output: {e}") from e
        return [
            ContainerRef(
                id=entry["Id"],
                name=(entry.get("Names") or [entry["Id"][:12]])[0],
                pod=entry.get("PodName") or None,
                is_infra=bool(entry.get("IsInfra")),
                labels=entry.get("Labels") or {},
            )
            for entry in entries
        ]

    def list_containers_by_label(self, label: str, value: str) -> list[ContainerRef]:
        """
        List containers carrying ``label=value``.

        Raises:
            EngineError: If podman fails
        """
        return self._list(f"label={label}={value}")

    def list_pod_containers(self, pod: str) -> list[ContainerRef]:
        """List the containers of a podman pod."""
        return self._list(f"pod={pod}")

    def generate_manifest_for_containers(self, container_ids: list[str]) -> str:
        """
        Generate a kube Pod manifest for containers.

        Args:
            container_ids: Container IDs or names

        Returns:
            Manifest YAML text

        Raises:
            EngineError: If no container is given or podman fails
        """
        if not container_ids:
            raise EngineError("No container to generate a manifest for")
        return self._run(["kube", "generate", *container_ids])

    def generate_manifest_for_pod(self, pod: str) -> str:
        """Generate the manifest of a podman pod, skipping its infra container."""
        containers = [c for c in self.list_pod_containers(pod) if not c.is_infra]
        return self.generate_manifest_for_containers([c.id for c in containers])

    def generate_manifest_for_compose_project(self, project: str) -> str:
        """Generate one Pod manifest for all containers of a compose project."""
        containers = self.list_containers_by_label(COMPOSE_PROJECT_LABEL, project)
        return self.generate_manifest_for_containers([c.id for c in containers])
