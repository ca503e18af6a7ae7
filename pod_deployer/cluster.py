"""Kubernetes cluster access for pod deployments."""

import logging
from typing import Any, Optional

from kubernetes import config
from kubernetes.client import ApiClient, ApisApi, CoreV1Api, CustomObjectsApi, NetworkingV1Api
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from .config import Settings

logger = logging.getLogger(__name__)

ROUTE_GROUP = "route.openshift.io"
ROUTE_VERSION = "v1"
ROUTE_PLURAL = "routes"


class ClusterConnection:
    """Connection to the Kubernetes cluster selected in the kubeconfig."""

    def __init__(self, settings: Settings):
        """
        Initialize cluster connection.

        Args:
            settings: Pod deployer settings

        Raises:
            ValueError: If kubeconfig is invalid
        """
        self.settings = settings
        self._api_client: Optional[ApiClient] = None
        self._core_v1: Optional[CoreV1Api] = None
        self._networking_v1: Optional[NetworkingV1Api] = None
        self._custom_objects: Optional[CustomObjectsApi] = None
        self._apis: Optional[ApisApi] = None
        self._in_cluster = False

        self._initialize_client()

    def _initialize_client(self):
        """Initialize Kubernetes API client."""
        try:
            try:
                config.load_kube_config(
                    config_file=self.settings.kubeconfig_path,
                    context=self.settings.context,
                )
            except ConfigException:
                if self.settings.kubeconfig_path:
                    raise
                # No kubeconfig, try in-cluster config (when running inside K8s)
                config.load_incluster_config()
                self._in_cluster = True

            self._api_client = ApiClient()
            self._core_v1 = CoreV1Api(self._api_client)
            self._networking_v1 = NetworkingV1Api(self._api_client)
            self._custom_objects = CustomObjectsApi(self._api_client)
            self._apis = ApisApi(self._api_client)

        except Exception as e:
            raise ValueError(f"Failed to initialize cluster connection: {e}") from e

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance."""
        if not self._core_v1:
            raise RuntimeError("Cluster connection not initialized")
        return self._core_v1

    @property
    def networking_v1(self) -> NetworkingV1Api:
        """Get NetworkingV1Api instance."""
        if not self._networking_v1:
            raise RuntimeError("Cluster connection not initialized")
        return self._networking_v1

    @property
    def custom_objects(self) -> CustomObjectsApi:
        """Get CustomObjectsApi instance."""
        if not self._custom_objects:
            raise RuntimeError("Cluster connection not initialized")
        return self._custom_objects

    @property
    def apis(self) -> ApisApi:
        """Get ApisApi instance."""
        if not self._apis:
            raise RuntimeError("Cluster connection not initialized")
        return self._apis

    @property
    def api_client(self) -> ApiClient:
        """Get ApiClient instance."""
        if not self._api_client:
            raise RuntimeError("Cluster connection not initialized")
        return self._api_client

    def _active_context(self) -> Optional[dict[str, Any]]:
        if self._in_cluster:
            return None
        try:
            contexts, active = config.list_kube_config_contexts(
                config_file=self.settings.kubeconfig_path
            )
        except ConfigException as e:
            logger.warning(f"Unable to read kubeconfig contexts: {e}")
            return None
        if self.settings.context:
            for context in contexts:
                if context.get("name") == self.settings.context:
                    return context
        return active

    def get_current_context_name(self) -> Optional[str]:
        """Name of the kubeconfig context in use, if any."""
        context = self._active_context()
        return context.get("name") if context else None

    def get_current_namespace(self) -> Optional[str]:
        """Namespace configured on the current kubeconfig context, if any."""
        context = self._active_context()
        if not context:
            return None
        return (context.get("context") or {}).get("namespace")

    def close(self):
        """Close the cluster connection and clean up resources."""
        if self._api_client:
            self._api_client.close()
            self._api_client = None

        self._core_v1 = None
        self._networking_v1 = None
        self._custom_objects = None
        self._apis = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class KubernetesResources:
    """
    Resource operations used by a pod deployment.

    Bodies are plain manifest dicts and results are returned as dicts.
    No call is retried; errors propagate as ``ApiException``.
    """

    def __init__(self, cluster: ClusterConnection):
        """
        Initialize resource operations.

        Args:
            cluster: Cluster connection
        """
        self.cluster = cluster
        self.settings = cluster.settings
        self.core_v1 = cluster.core_v1
        self.networking_v1 = cluster.networking_v1
        self.custom_objects = cluster.custom_objects

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.cluster.api_client.sanitize_for_serialization(obj)

    def list_namespaces(self) -> list[str]:
        """
        List namespace names.

        Errors are logged and an empty list is returned.
        """
        try:
            result = self.core_v1.list_namespace()
        except ApiException as e:
            logger.warning(f"Unable to list namespaces: {e.reason}")
            return []
        except Exception as e:
            logger.warning(f"Unable to list namespaces: {e}")
            return []
        return [ns.metadata.name for ns in result.items]

    def is_api_group_supported(self, group: str) -> bool:
        """
        Check whether the cluster serves an API group.

        Args:
            group: API group name (e.g. route.openshift.io)

        Returns:
            True if the group is served
        """
        try:
            groups = self.cluster.apis.get_api_versions().groups or []
        except ApiException as e:
            logger.warning(f"Unable to list API groups: {e.reason}")
            return False
        except Exception as e:
            logger.warning(f"Unable to list API groups: {e}")
            return False
        return any(g.name == group for g in groups)

    def supports_routes(self) -> bool:
        """Whether OpenShift routes are available."""
        return self.is_api_group_supported(self.settings.route_api_group)

    def read_config_map(self, name: str, namespace: str) -> Optional[dict[str, Any]]:
        """
        Read a ConfigMap.

        Returns:
            ConfigMap dict or None when it cannot be read
        """
        try:
            config_map = self.core_v1.read_namespaced_config_map(name, namespace)
        except ApiException as e:
            logger.debug(f"ConfigMap {namespace}/{name} not readable: {e.status}")
            return None
        except Exception as e:
            logger.warning(f"ConfigMap {namespace}/{name} not readable: {e}")
            return None
        return self._to_dict(config_map)

    def get_openshift_console_url(self) -> Optional[str]:
        """Public URL of the OpenShift web console, if this is OpenShift."""
        config_map = self.read_config_map(
            self.settings.console_config_map,
            self.settings.console_config_map_namespace,
        )
        if not config_map:
            return None
        return (config_map.get("data") or {}).get("consoleURL")

    def create_pod(self, namespace: str, manifest: dict[str, Any]) -> dict[str, Any]:
        """
        Create a pod.

        Args:
            namespace: Kubernetes namespace
            manifest: Pod manifest

        Returns:
            Created pod

        Raises:
            ApiException: If creation fails
        """
        pod = self.core_v1.create_namespaced_pod(namespace=namespace, body=manifest)
        return self._to_dict(pod)

    def read_pod(self, name: str, namespace: str) -> dict[str, Any]:
        """
        Read a pod.

        Raises:
            ApiException: If the pod cannot be read
        """
        return self._to_dict(self.core_v1.read_namespaced_pod(name, namespace))

    def create_service(self, namespace: str, spec: dict[str, Any]) -> dict[str, Any]:
        """Create a Service."""
        service = self.core_v1.create_namespaced_service(namespace=namespace, body=spec)
        return self._to_dict(service)

    def create_route(self, namespace: str, spec: dict[str, Any]) -> dict[str, Any]:
        """Create an OpenShift Route."""
        return self.custom_objects.create_namespaced_custom_object(
            group=ROUTE_GROUP,
            version=ROUTE_VERSION,
            namespace=namespace,
            plural=ROUTE_PLURAL,
            body=spec,
        )

    def create_ingress(self, namespace: str, spec: dict[str, Any]) -> dict[str, Any]:
        """Create an Ingress."""
        ingress = self.networking_v1.create_namespaced_ingress(namespace=namespace, body=spec)
        return self._to_dict(ingress)


def connect(settings: Settings) -> KubernetesResources:
    """Open a cluster connection and return its resource operations."""
    return KubernetesResources(ClusterConnection(settings))


