"""Submission of a pod and its exposing objects to the cluster."""

import asyncio
import logging
from typing import Any, Optional

from .events import DEPLOY_POD_EVENT, EventPublisher
from .exceptions import PlanError, PlanWarning, SubmissionError
from .manifest import pod_name, restore, snapshot
from .models import DeploymentOutcome, DeploymentPlan, DeployOptions, PlanIssueLevel
from .planner import plan_resources
from .sanitizer import sanitize

logger = logging.getLogger(__name__)


class DeploymentSubmitter:
    """
    Creates a pod, then its Services, Routes and Ingress, in that order.

    Steps run strictly one after the other and nothing is retried. When the
    pod itself cannot be created, the caller's manifest is restored to its
    value before sanitizing. Objects created before a later failure are left
    in the cluster and reported on the raised SubmissionError.
    """

    def __init__(
        self,
        resources: Any,
        event_publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize submitter.

        Args:
            resources: Cluster operations (see cluster.KubernetesResources)
            event_publisher: Receives the deployment event
        """
        self.resources = resources
        self.event_publisher = event_publisher or EventPublisher()

    async def _call(self, method: str, *args: Any) -> Any:
        return await asyncio.to_thread(getattr(self.resources, method), *args)

    async def detect_openshift(self) -> bool:
        """Whether the cluster serves OpenShift routes."""
        return await self._call("supports_routes")

    def prepare(
        self,
        manifest: dict[str, Any],
        options: DeployOptions,
        openshift: bool,
    ) -> DeploymentPlan:
        """
        Plan the objects to create, failing on any planning issue.

        Raises:
            PlanWarning: User-correctable issue
            PlanError: Issue that needs re-planning
        """
        plan = plan_resources(manifest, options, openshift=openshift)
        if plan.issue:
            logger.warning(f"Deployment of {pod_name(manifest)} aborted: {plan.issue.message}")
            if plan.issue.level == PlanIssueLevel.WARNING:
                raise PlanWarning(plan.issue.message)
            raise PlanError(plan.issue.message)
        return plan

    async def submit(
        self,
        manifest: dict[str, Any],
        options: DeployOptions,
        namespace: str,
    ) -> DeploymentOutcome:
        """
        Deploy a pod manifest.

        The manifest is sanitized in place. If pod creation fails it is
        restored to its original content.

        Args:
            manifest: Pod manifest as generated by the container engine
            options: Deployment options
            namespace: Target namespace

        Returns:
            DeploymentOutcome

        Raises:
            PlanWarning: User-correctable planning issue, nothing was created
            PlanError: Planning error, nothing was created
            SubmissionError: A cluster call failed
        """
        openshift = await self.detect_openshift()
        plan = self.prepare(manifest, options, openshift)

        saved = snapshot(manifest)
        sanitize(manifest, options)
        name = pod_name(manifest)

        event_properties: dict[str, Any] = {
            "useServices": options.use_services,
            "useRoutes": options.use_routes,
            "createIngress": options.create_ingress,
            "useRestricted": options.use_restricted_security_context,
        }

        logger.info(f"Creating pod {namespace}/{name}")
        try:
            pod = await self._call("create_pod", namespace, manifest)
        except Exception as e:
            restore(manifest, saved)
            self._emit_failure(event_properties, e)
            logger.error(f"Failed to create pod {namespace}/{name}: {e}")
            raise SubmissionError("pod", e) from e

        created: list[tuple[str, str]] = [("Pod", name)]
        outcome = DeploymentOutcome(pod=pod, namespace=namespace, openshift=openshift)

        stage = "service"
        try:
            for service in plan.services:
                service_name = service["metadata"]["name"]
                logger.info(f"Creating service {namespace}/{service_name}")
                await self._call("create_service", namespace, service)
                created.append(("Service", service_name))
                outcome.services.append(service_name)

            stage = "route"
            for route in plan.routes:
                route_name = route["metadata"]["name"]
                logger.info(f"Creating route {namespace}/{route_name}")
                created_route = await self._call("create_route", namespace, route)
                created.append(("Route", route_name))
                outcome.routes.append(created_route)

            stage = "ingress"
            if plan.ingress:
                ingress_name = plan.ingress["metadata"]["name"]
                logger.info(f"Creating ingress {namespace}/{ingress_name}")
                await self._call("create_ingress", namespace, plan.ingress)
                created.append(("Ingress", ingress_name))
                outcome.ingress = ingress_name
        except Exception as e:
            self._emit_failure(event_properties, e)
            logger.error(
                f"Failed to create {stage} for pod {namespace}/{name}, "
                f"already created: {', '.join(f'{k}/{n}' for k, n in created)}"
            )
            raise SubmissionError(stage, e, created=created) from e

        if openshift:
            outcome.console_url = await self._console_url()

        self.event_publisher.emit(DEPLOY_POD_EVENT, {**event_properties, "isOpenshift": openshift})
        logger.info(
            f"Deployed pod {namespace}/{name} with {len(outcome.services)} services, "
            f"{len(outcome.routes)} routes"
        )
        return outcome

    async def _console_url(self) -> Optional[str]:
        try:
            return await self._call("get_openshift_console_url")
        except Exception as e:
            logger.warning(f"Unable to discover the OpenShift console URL: {e}")
            return None

    def _emit_failure(self, properties: dict[str, Any], error: Exception) -> None:
        self.event_publisher.emit(DEPLOY_POD_EVENT, {**properties, "errorMessage": str(error)})
