"""Strip host-specific fields from a pod manifest before it is deployed."""

import logging
from typing import Any

from .models import DeployOptions

logger = logging.getLogger(__name__)


def sanitize(manifest: dict[str, Any], options: DeployOptions) -> dict[str, Any]:
    """
    Make a generated pod manifest acceptable to the cluster.

    The manifest is mutated in place and returned. Callers that need the
    original (e.g. to roll back) must snapshot it first. Resources must be
    planned before calling this, since host ports are removed here.

    Args:
        manifest: Pod manifest
        options: Deployment options

    Returns:
        The same manifest object
    """
    spec = manifest.get("spec") or {}

    # Volumes are not supported when deploying to a cluster
    if spec.pop("volumes", None) is not None:
        logger.debug("Removed volumes from pod manifest")

    if options.use_services:
        for container in spec.get("containers") or []:
            container.pop("volumeMounts", None)
            for port in container.get("ports") or []:
                port.pop("hostPort", None)

    if options.use_restricted_security_context:
        apply_restricted_security_context(manifest)

    return manifest


def apply_restricted_security_context(manifest: dict[str, Any]) -> dict[str, Any]:
    """
    Apply the "restricted" pod security standard to a manifest in place.

    Sets non-root execution and the RuntimeDefault seccomp profile on the pod,
    and on every container forbids privilege escalation and drops all
    capabilities.
    """
    spec = manifest.setdefault("spec", {})

    pod_context = spec.get("securityContext") or {}
    pod_context["runAsNonRoot"] = True
    pod_context["seccompProfile"] = {"type": "RuntimeDefault"}
    spec["securityContext"] = pod_context

    for container in spec.get("containers") or []:
        context = container.get("securityContext") or {}
        context.pop("privileged", None)
        context["allowPrivilegeEscalation"] = False
        context["runAsNonRoot"] = True
        context["seccompProfile"] = {"type": "RuntimeDefault"}
        context["capabilities"] = {"drop": ["ALL"]}
        container["securityContext"] = context

    return manifest
