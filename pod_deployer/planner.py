"""Derive the Services, Routes and Ingress that expose a deployed pod."""

import logging
from typing import Any, Optional

from .manifest import iter_container_ports, pod_name
from .models import DeploymentPlan, DeployOptions, PlanIssue, PlanIssueLevel

logger = logging.getLogger(__name__)

NO_SERVICE_WARNING = "A Pod must have a Service associated to a port mapping"
NO_PORT_WARNING = "You need to specify a port"
NO_MATCHING_SERVICE_ERROR = "Unable to find the service that matches the port"


def build_service(name: str, host_port: Any, container_port: int, protocol: Optional[str]) -> dict[str, Any]:
    """Build a ClusterIP Service for one published container port."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": f"{name}-{host_port}"},
        "spec": {
            "type": "ClusterIP",
            "selector": {"app": name},
            "ports": [
                {
                    "port": container_port,
                    "protocol": protocol or "TCP",
                    "targetPort": container_port,
                }
            ],
        },
    }


def build_route(service: dict[str, Any]) -> dict[str, Any]:
    """Build an edge-terminated OpenShift Route for a Service."""
    service_name = service["metadata"]["name"]
    return {
        "apiVersion": "route.openshift.io/v1",
        "kind": "Route",
        "metadata": {"name": service_name},
        "spec": {
            "to": {"kind": "Service", "name": service_name},
            "port": {"targetPort": service["spec"]["ports"][0]["targetPort"]},
            "tls": {
                "termination": "edge",
                "insecureEdgeTerminationPolicy": "Redirect",
            },
        },
    }


def build_ingress(name: str, service_name: str, port: int) -> dict[str, Any]:
    """Build an Ingress whose default backend is the given Service port."""
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {"name": f"{name}-ingress"},
        "spec": {
            "defaultBackend": {
                "service": {"name": service_name, "port": {"number": port}},
            },
        },
    }


def available_ingress_ports(manifest: dict[str, Any]) -> list[int]:
    """Container ports that can be chosen as ingress target."""
    ports = []
    for _, port in iter_container_ports(manifest):
        if port.get("hostPort") and port.get("containerPort") not in ports:
            ports.append(port["containerPort"])
    return ports


def plan_resources(
    manifest: dict[str, Any],
    options: DeployOptions,
    openshift: bool = False,
) -> DeploymentPlan:
    """
    Plan the auxiliary objects for a pod manifest.

    Must run on the unsanitized manifest: services are derived from host
    ports, which sanitizing removes.

    Args:
        manifest: Pod manifest (not yet sanitized)
        options: Deployment options
        openshift: Whether the cluster serves the OpenShift route API

    Returns:
        DeploymentPlan, with ``issue`` set when submission must not proceed
    """
    plan = DeploymentPlan()
    if not options.use_services:
        return plan

    name = pod_name(manifest)
    for _, port in iter_container_ports(manifest):
        host_port = port.get("hostPort")
        if not host_port:
            continue
        plan.services.append(
            build_service(name, host_port, port.get("containerPort"), port.get("protocol"))
        )

    if openshift and options.use_routes:
        plan.routes = [build_route(service) for service in plan.services]

    if options.create_ingress and not openshift:
        target = _resolve_ingress_target(plan, options.ingress_port)
        if target is not None:
            service_name, port = target
            plan.ingress = build_ingress(name, service_name, port)

    logger.debug(
        f"Planned {len(plan.services)} services, {len(plan.routes)} routes, "
        f"ingress={plan.ingress is not None} for pod {name}"
    )
    return plan


def _resolve_ingress_target(
    plan: DeploymentPlan, ingress_port: Optional[int]
) -> Optional[tuple[str, int]]:
    """Pick the service and port the ingress routes to, recording any issue."""
    if not plan.services:
        plan.issue = PlanIssue(level=PlanIssueLevel.WARNING, message=NO_SERVICE_WARNING)
        return None

    if len(plan.services) == 1:
        service = plan.services[0]
        return service["metadata"]["name"], service["spec"]["ports"][0]["port"]

    if ingress_port is None:
        plan.issue = PlanIssue(level=PlanIssueLevel.WARNING, message=NO_PORT_WARNING)
        return None

    # First match wins; ports are unique per pod
    for service in plan.services:
        for port in service["spec"]["ports"]:
            if port["targetPort"] == ingress_port:
                return service["metadata"]["name"], port["port"]

    plan.issue = PlanIssue(level=PlanIssueLevel.ERROR, message=NO_MATCHING_SERVICE_ERROR)
    return None
