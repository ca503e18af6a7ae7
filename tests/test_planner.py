"""Tests for resource planning."""

import pytest

from pod_deployer import DeployOptions, PlanIssueLevel, available_ingress_ports, plan_resources
from pod_deployer.planner import NO_MATCHING_SERVICE_ERROR, NO_PORT_WARNING, NO_SERVICE_WARNING


def _pod(name, ports_per_container):
    return {
        "metadata": {"name": name, "labels": {"app": name}},
        "spec": {
            "containers": [
                {"name": f"c{i}", "image": "busybox", "ports": ports}
                for i, ports in enumerate(ports_per_container)
            ]
        },
    }


class TestServices:
    """Test cases for service planning."""

    def test_no_services_when_disabled(self, web_manifest):
        """Test that nothing is planned without services."""
        plan = plan_resources(web_manifest, DeployOptions(use_services=False, create_ingress=True))

        assert plan.services == []
        assert plan.routes == []
        assert plan.ingress is None
        assert plan.ok

    def test_one_service_per_host_port(self):
        """Test that N containers with distinct host ports give N services."""
        manifest = _pod(
            "app",
            [
                [{"hostPort": 8080, "containerPort": 80}],
                [{"hostPort": 8443, "containerPort": 443}],
                [{"hostPort": 5432, "containerPort": 5432}],
            ],
        )

        plan = plan_resources(manifest, DeployOptions())

        assert [s["metadata"]["name"] for s in plan.services] == ["app-8080", "app-8443", "app-5432"]
        assert [s["spec"]["ports"][0]["targetPort"] for s in plan.services] == [80, 443, 5432]

    def test_service_shape(self, web_manifest):
        """Test the generated service."""
        plan = plan_resources(web_manifest, DeployOptions())

        service = plan.services[0]
        assert service["kind"] == "Service"
        assert service["metadata"]["name"] == "web-8080"
        assert service["spec"]["selector"] == {"app": "web"}
        assert service["spec"]["ports"] == [{"port": 80, "protocol": "TCP", "targetPort": 80}]

    def test_ports_without_host_port_skipped(self, multi_port_manifest):
        """Test that unpublished ports get no service."""
        plan = plan_resources(multi_port_manifest, DeployOptions())

        assert [s["metadata"]["name"] for s in plan.services] == ["shop-8080", "shop-9090"]

    def test_protocol_kept(self):
        """Test that a UDP port keeps its protocol."""
        manifest = _pod("dns", [[{"hostPort": 5353, "containerPort": 53, "protocol": "UDP"}]])

        plan = plan_resources(manifest, DeployOptions())

        assert plan.services[0]["spec"]["ports"][0]["protocol"] == "UDP"


class TestRoutes:
    """Test cases for OpenShift route planning."""

    def test_routes_on_openshift(self, multi_port_manifest):
        """Test that each service gets an edge route."""
        plan = plan_resources(multi_port_manifest, DeployOptions(), openshift=True)

        assert len(plan.routes) == 2
        route = plan.routes[0]
        assert route["kind"] == "Route"
        assert route["spec"]["to"] == {"kind": "Service", "name": "shop-8080"}
        assert route["spec"]["port"] == {"targetPort": 80}
        assert route["spec"]["tls"]["termination"] == "edge"

    def test_no_routes_when_disabled(self, web_manifest):
        """Test use_routes=False on OpenShift."""
        plan = plan_resources(web_manifest, DeployOptions(use_routes=False), openshift=True)

        assert plan.routes == []

    def test_no_routes_off_openshift(self, web_manifest):
        """Test that plain Kubernetes gets no routes."""
        plan = plan_resources(web_manifest, DeployOptions(use_routes=True))

        assert plan.routes == []

    def test_no_ingress_on_openshift(self, web_manifest):
        """Test that ingress is not planned when routes are available."""
        plan = plan_resources(web_manifest, DeployOptions(create_ingress=True), openshift=True)

        assert plan.ingress is None
        assert plan.ok


class TestIngress:
    """Test cases for ingress planning."""

    @pytest.fixture
    def two_services(self):
        return _pod(
            "app",
            [
                [{"hostPort": 8080, "containerPort": 80}],
                [{"hostPort": 9090, "containerPort": 3000}],
            ],
        )

    def test_zero_services_warning(self):
        """Test ingress without any published port."""
        manifest = _pod("app", [[{"containerPort": 80}]])

        plan = plan_resources(manifest, DeployOptions(create_ingress=True))

        assert plan.ingress is None
        assert plan.issue.level == PlanIssueLevel.WARNING
        assert plan.issue.message == NO_SERVICE_WARNING

    def test_single_service_auto_target(self, web_manifest):
        """Test that the only service is targeted."""
        plan = plan_resources(web_manifest, DeployOptions(create_ingress=True))

        assert plan.ok
        backend = plan.ingress["spec"]["defaultBackend"]["service"]
        assert backend == {"name": "web-8080", "port": {"number": 80}}

    def test_two_services_without_port_warning(self, two_services):
        """Test that a port must be chosen."""
        plan = plan_resources(two_services, DeployOptions(create_ingress=True))

        assert plan.ingress is None
        assert plan.issue.level == PlanIssueLevel.WARNING
        assert plan.issue.message == NO_PORT_WARNING

    def test_two_services_with_matching_port(self, two_services):
        """Test that the chosen port selects its service."""
        plan = plan_resources(two_services, DeployOptions(create_ingress=True, ingress_port=3000))

        assert plan.ok
        backend = plan.ingress["spec"]["defaultBackend"]["service"]
        assert backend == {"name": "app-9090", "port": {"number": 3000}}

    def test_two_services_with_unknown_port(self, two_services):
        """Test a chosen port that matches no service."""
        plan = plan_resources(two_services, DeployOptions(create_ingress=True, ingress_port=1234))

        assert plan.ingress is None
        assert plan.issue.level == PlanIssueLevel.ERROR
        assert plan.issue.message == NO_MATCHING_SERVICE_ERROR

    def test_available_ports(self, multi_port_manifest):
        """Test listing ports selectable as ingress target."""
        assert available_ingress_ports(multi_port_manifest) == [80, 3000]
