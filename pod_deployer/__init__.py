"""Pod Deployer - deploy local podman pods to Kubernetes and OpenShift."""

from .cluster import ClusterConnection, KubernetesResources, connect
from .config import Settings, get_settings
from .engine import PodmanEngine
from .events import EventPublisher
from .exceptions import (
    DeploymentInProgressError,
    EngineError,
    ManifestError,
    PlanError,
    PlanIssueError,
    PlanWarning,
    PodDeployerError,
    SubmissionError,
)
from .manifest import parse_manifest, render_manifest, set_pod_name, sync_app_label
from .models import (
    ContainerRef,
    DeploymentEvent,
    DeploymentOutcome,
    DeploymentPlan,
    DeployOptions,
    PlanIssue,
    PlanIssueLevel,
    PodPhase,
)
from .planner import available_ingress_ports, plan_resources
from .poller import PodStatusPoller
from .sanitizer import apply_restricted_security_context, sanitize
from .session import DeploySession
from .submitter import DeploymentSubmitter

__version__ = "0.1.0"

__all__ = [
    # Cluster access
    "ClusterConnection",
    "KubernetesResources",
    "connect",
    "PodmanEngine",
    # Manifest handling
    "parse_manifest",
    "render_manifest",
    "set_pod_name",
    "sync_app_label",
    "sanitize",
    "apply_restricted_security_context",
    # Planning and submission
    "plan_resources",
    "available_ingress_ports",
    "DeploymentSubmitter",
    "PodStatusPoller",
    "DeploySession",
    "EventPublisher",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "ContainerRef",
    "DeploymentEvent",
    "DeploymentOutcome",
    "DeploymentPlan",
    "DeployOptions",
    "PlanIssue",
    "PlanIssueLevel",
    "PodPhase",
    # Errors
    "PodDeployerError",
    "ManifestError",
    "EngineError",
    "PlanIssueError",
    "PlanWarning",
    "PlanError",
    "SubmissionError",
    "DeploymentInProgressError",
]
