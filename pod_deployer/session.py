"""Deployment session - holds the state of one deploy form."""

import asyncio
import logging
from typing import Any, Optional

from .config import Settings, get_settings
from .events import EventPublisher
from .exceptions import (
    DeploymentInProgressError,
    PlanError,
    PlanWarning,
    SubmissionError,
)
from .manifest import parse_manifest, render_manifest, set_labels, set_pod_name, sync_app_label
from .models import DeploymentOutcome, DeployOptions, PodPhase
from .planner import available_ingress_ports
from .poller import PodStatusPoller, pod_phase
from .submitter import DeploymentSubmitter

logger = logging.getLogger(__name__)


class DeploySession:
    """
    State of a deploy form for one local pod.

    Only one deployment may be in flight at a time. Starting a new one
    clears the results of the previous attempt and cancels its status
    poller. ``close()`` (or leaving the ``async with`` block) always cancels
    the poller.
    """

    def __init__(
        self,
        resources: Any,
        engine: Any = None,
        settings: Optional[Settings] = None,
        event_publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize deploy session.

        Args:
            resources: Cluster operations (see cluster.KubernetesResources)
            engine: Container engine (see engine.PodmanEngine)
            settings: Settings (global settings when not given)
            event_publisher: Event publisher
        """
        self.resources = resources
        self.engine = engine
        self.settings = settings or get_settings()
        self.event_publisher = event_publisher or EventPublisher()
        self.submitter = DeploymentSubmitter(resources, self.event_publisher)

        self.manifest: Optional[dict[str, Any]] = None
        self.options = DeployOptions()

        # Cluster context
        self.context_name: Optional[str] = None
        self.current_namespace: Optional[str] = None
        self.namespaces: list[str] = []

        # Attempt state
        self.deploy_started = False
        self.deploy_finished = False
        self.outcome: Optional[DeploymentOutcome] = None
        self.pod: Optional[dict[str, Any]] = None
        self.warning: Optional[str] = None
        self.error: Optional[str] = None
        self._poller: Optional[PodStatusPoller] = None

    # Manifest state

    async def load_pod(self, pod: str) -> dict[str, Any]:
        """
        Generate and load the manifest of a local podman pod.

        Raises:
            EngineError: If the container engine fails
            ManifestError: If the generated manifest cannot be parsed
        """
        if self.engine is None:
            raise RuntimeError("No container engine configured")
        text = await asyncio.to_thread(self.engine.generate_manifest_for_pod, pod)
        return self.load_manifest_text(text)

    def load_manifest_text(self, text: str) -> dict[str, Any]:
        """Parse and load a manifest from YAML text."""
        self.manifest = parse_manifest(text)
        return self.manifest

    @property
    def manifest_text(self) -> str:
        """Display rendering of the current manifest."""
        if self.manifest is None:
            return ""
        return render_manifest(self.manifest)

    def rename_pod(self, name: str) -> None:
        """Change the pod name, keeping the app label in sync."""
        set_pod_name(self._require_manifest(), name)

    def update_labels(self, labels: dict[str, str]) -> None:
        """Replace the pod labels, keeping the app label in sync."""
        set_labels(self._require_manifest(), labels)

    @property
    def ingress_ports(self) -> list[int]:
        """Container ports the user can choose as ingress target."""
        if self.manifest is None:
            return []
        return available_ingress_ports(self.manifest)

    def _require_manifest(self) -> dict[str, Any]:
        if self.manifest is None:
            raise RuntimeError("No manifest loaded")
        return self.manifest

    # Cluster context

    async def discover(self) -> None:
        """
        Read the current context, namespace and namespace list.

        Namespace listing failures leave the list empty.
        """
        cluster = getattr(self.resources, "cluster", None)
        if cluster is not None:
            self.context_name = await asyncio.to_thread(cluster.get_current_context_name)
            self.current_namespace = await asyncio.to_thread(cluster.get_current_namespace)
        self.namespaces = await asyncio.to_thread(self.resources.list_namespaces)
        logger.info(
            f"Using context {self.context_name}, namespace {self.target_namespace} "
            f"({len(self.namespaces)} namespaces visible)"
        )

    @property
    def target_namespace(self) -> str:
        """Namespace the pod is deployed to."""
        return (
            self.options.namespace
            or self.current_namespace
            or self.settings.default_namespace
        )

    # Deployment

    def reset(self) -> None:
        """Clear the results of the previous attempt and stop its poller."""
        self._stop_poller()
        self.deploy_finished = False
        self.outcome = None
        self.pod = None
        self.warning = None
        self.error = None

    async def deploy(self) -> Optional[DeploymentOutcome]:
        """
        Deploy the loaded manifest with the current options.

        Warnings and errors are stored on ``warning`` / ``error`` instead of
        being raised, so the form stays usable.

        Returns:
            DeploymentOutcome, or None when the attempt failed

        Raises:
            DeploymentInProgressError: If a deployment is already in flight
        """
        if self.deploy_started:
            raise DeploymentInProgressError("A deployment is already in progress")

        manifest = self._require_manifest()
        self.reset()
        self.deploy_started = True
        namespace = self.target_namespace
        sync_app_label(manifest)

        try:
            self.outcome = await self.submitter.submit(manifest, self.options, namespace)
        except PlanWarning as e:
            self.warning = e.message
            return None
        except PlanError as e:
            self.error = e.message
            return None
        except SubmissionError as e:
            self.error = str(e.cause)
            return None
        except Exception as e:
            logger.error(f"Unexpected error deploying pod: {e}", exc_info=True)
            self.error = str(e)
            return None
        finally:
            self.deploy_started = False

        self.deploy_finished = True
        self.pod = self.outcome.pod
        self._start_poller(self.outcome.pod_name, namespace)
        return self.outcome

    def _start_poller(self, name: str, namespace: str) -> None:
        self._poller = PodStatusPoller(
            self.resources.read_pod,
            interval=self.settings.poll_interval_seconds,
            on_update=self._on_pod_update,
            event_publisher=self.event_publisher,
        )
        self._poller.start(name, namespace)

    def _on_pod_update(self, pod: dict[str, Any]) -> None:
        self.pod = pod
        if self.outcome is not None and pod_phase(pod) == PodPhase.RUNNING.value:
            self.outcome.phase = PodPhase.RUNNING

    def _stop_poller(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None

    @property
    def polling(self) -> bool:
        """True while the pod status is being polled."""
        return self._poller is not None and self._poller.running

    async def wait_until_running(self) -> Optional[dict[str, Any]]:
        """Wait for the deployed pod to reach Running (None if cancelled)."""
        if self._poller is None:
            return None
        return await self._poller.wait()

    @property
    def console_pod_url(self) -> Optional[str]:
        """OpenShift console page of the deployed pod, when known."""
        if not self.outcome or not self.outcome.console_url:
            return None
        base = self.outcome.console_url.rstrip("/")
        return f"{base}/k8s/ns/{self.outcome.namespace}/pods/{self.outcome.pod_name}"

    # Teardown

    def close(self) -> None:
        """Release the session: cancels any status polling."""
        self._stop_poller()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        self.close()
