"""Exceptions raised while planning and submitting a pod deployment."""

from typing import Optional


class PodDeployerError(Exception):
    """Base class for pod deployer errors."""

    pass


class ManifestError(PodDeployerError):
    """Raised when a manifest cannot be parsed into a Pod document."""

    pass


class EngineError(PodDeployerError):
    """Raised when the container engine fails to answer a request."""

    pass


class PlanIssueError(PodDeployerError):
    """Raised when the resource plan cannot be submitted as is."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PlanWarning(PlanIssueError):
    """User-correctable planning problem (e.g. ingress port not chosen)."""

    pass


class PlanError(PlanIssueError):
    """Planning problem that needs the plan to be recomputed."""

    pass


class DeploymentInProgressError(PodDeployerError):
    """Raised when a deployment is requested while another one is running."""

    pass


class SubmissionError(PodDeployerError):
    """
    Raised when a cluster call fails while creating the deployment objects.

    Attributes:
        stage: Step that failed (pod, service, route, ingress)
        cause: Original exception
        created: Objects created before the failure, as (kind, name) pairs
    """

    def __init__(
        self,
        stage: str,
        cause: Exception,
        created: Optional[list[tuple[str, str]]] = None,
    ):
        super().__init__(f"Failed to create {stage}: {cause}")
        self.stage = stage
        self.cause = cause
        self.created: list[tuple[str, str]] = created or []
