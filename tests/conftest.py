"""Pytest configuration and fixtures for pod deployer tests."""

import copy

import pytest
from unittest.mock import MagicMock
from kubernetes import client

from pod_deployer import Settings


@pytest.fixture
def settings():
    """Settings with a short polling interval."""
    return Settings(poll_interval_seconds=0.01, default_namespace="default")


@pytest.fixture
def mock_cluster_connection(settings):
    """Mock cluster connection for testing."""
    mock_conn = MagicMock()
    mock_conn.settings = settings
    mock_conn.core_v1 = MagicMock(spec=client.CoreV1Api)
    mock_conn.networking_v1 = MagicMock(spec=client.NetworkingV1Api)
    mock_conn.custom_objects = MagicMock(spec=client.CustomObjectsApi)
    mock_conn.apis = MagicMock(spec=client.ApisApi)
    mock_conn.api_client.sanitize_for_serialization.side_effect = lambda obj: {"sanitized": obj}
    return mock_conn


@pytest.fixture
def mock_resources():
    """Mock cluster operations as used by the submitter and session."""
    resources = MagicMock()
    resources.supports_routes.return_value = False
    resources.create_pod.side_effect = lambda namespace, manifest: copy.deepcopy(manifest)
    resources.create_route.side_effect = lambda namespace, spec: {
        **spec,
        "spec": {**spec["spec"], "host": f"{spec['metadata']['name']}.apps.example.com"},
    }
    resources.get_openshift_console_url.return_value = None
    resources.read_pod.return_value = {"metadata": {"name": "web"}, "status": {"phase": "Running"}}
    resources.list_namespaces.return_value = ["default", "team-a"]
    return resources


@pytest.fixture
def web_manifest():
    """One container publishing host port 8080 to container port 80."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "web", "labels": {"app": "web"}},
        "spec": {
            "containers": [
                {
                    "name": "nginx",
                    "image": "docker.io/library/nginx:latest",
                    "ports": [{"hostPort": 8080, "containerPort": 80}],
                }
            ],
        },
    }


@pytest.fixture
def multi_port_manifest():
    """Two containers, each with a published port, plus volumes."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "shop", "labels": {"app": "shop"}},
        "spec": {
            "containers": [
                {
                    "name": "frontend",
                    "image": "quay.io/example/frontend:1.0",
                    "ports": [{"hostPort": 8080, "containerPort": 80, "protocol": "TCP"}],
                    "volumeMounts": [{"name": "static", "mountPath": "/srv"}],
                },
                {
                    "name": "api",
                    "image": "quay.io/example/api:1.0",
                    "ports": [
                        {"hostPort": 9090, "containerPort": 3000},
                        {"containerPort": 9000},
                    ],
                },
            ],
            "volumes": [{"name": "static", "hostPath": {"path": "/home/user/static"}}],
        },
    }
