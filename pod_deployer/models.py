"""Models for pod deployments."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class PodPhase(str, Enum):
    """Kubernetes pod phase."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class PlanIssueLevel(str, Enum):
    """Severity of a planning issue."""

    WARNING = "warning"
    ERROR = "error"


class DeployOptions(BaseModel):
    """Options chosen by the user for one deployment."""

    use_services: bool = True
    use_routes: bool = True
    create_ingress: bool = False
    use_restricted_security_context: bool = False
    ingress_port: Optional[int] = None  # Required when more than one service exists
    namespace: Optional[str] = None


class PlanIssue(BaseModel):
    """Warning or error found while planning resources."""

    level: PlanIssueLevel
    message: str


class DeploymentPlan(BaseModel):
    """Auxiliary objects to create alongside the pod."""

    services: list[dict[str, Any]] = Field(default_factory=list)
    routes: list[dict[str, Any]] = Field(default_factory=list)
    ingress: Optional[dict[str, Any]] = None
    issue: Optional[PlanIssue] = None

    @property
    def ok(self) -> bool:
        """True when the plan can be submitted."""
        return self.issue is None


class DeploymentOutcome(BaseModel):
    """Result of one submission attempt."""

    pod: dict[str, Any]
    namespace: str
    services: list[str] = Field(default_factory=list)
    routes: list[dict[str, Any]] = Field(default_factory=list)
    ingress: Optional[str] = None
    phase: PodPhase = PodPhase.PENDING
    openshift: bool = False
    console_url: Optional[str] = None

    @property
    def pod_name(self) -> str:
        """Name of the created pod."""
        return self.pod.get("metadata", {}).get("name", "")

    @property
    def route_urls(self) -> list[str]:
        """External URLs of the created routes."""
        urls = []
        for route in self.routes:
            host = route.get("spec", {}).get("host")
            if host:
                urls.append(f"https://{host}")
        return urls


class ContainerRef(BaseModel):
    """Container known to the local container engine."""

    id: str
    name: str
    pod: Optional[str] = None
    is_infra: bool = False
    labels: dict[str, str] = Field(default_factory=dict)


class DeploymentEvent(BaseModel):
    """Deployment lifecycle event."""

    name: str
    properties: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
