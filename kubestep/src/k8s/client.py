"""
Kubernetes client initialization and resource operations.
"""

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
import logging
from typing import Optional

from kubestep.src.errors import EngineConfigError

logger = logging.getLogger(__name__)

BACKGROUND = "Background"

def load_api_client(
    endpoint: str = "",
    kubeconfig_path: Optional[str] = None,
    in_cluster: bool = False,
) -> client.ApiClient:
    """Build an API client from in-cluster config or a kubeconfig file."""
    configuration = client.Configuration()

    try:
        if in_cluster:
            # Running inside Kubernetes
            config.load_incluster_config(client_configuration=configuration)
            logger.info("Loaded in-cluster Kubernetes config")
        elif kubeconfig_path or not endpoint:
            config.load_kube_config(
                config_file=kubeconfig_path,
                client_configuration=configuration,
            )
            logger.info(f"Loaded Kubernetes config from {kubeconfig_path or 'default location'}")
    except (ConfigException, OSError) as e:
        raise EngineConfigError(f"Failed to load Kubernetes config: {e}") from e

    if endpoint:
        configuration.host = endpoint

    return client.ApiClient(configuration)

class KubeClient:
    """Resource operations scoped to one namespace."""

    def __init__(self, core_v1: client.CoreV1Api, namespace: str):
        self.core_v1 = core_v1
        self.namespace = namespace

    @classmethod
    def connect(
        cls,
        endpoint: str = "",
        kubeconfig_path: Optional[str] = None,
        namespace: str = "default",
        in_cluster: bool = False,
    ) -> "KubeClient":
        api_client = load_api_client(endpoint, kubeconfig_path, in_cluster)
        return cls(client.CoreV1Api(api_client), namespace)

    def ping(self):
        """Check that the namespace can be reached."""
        self.core_v1.list_namespaced_pod(namespace=self.namespace, limit=1)

    def ensure_namespace(self):
        """Ensure the configured namespace exists."""
        try:
            self.core_v1.read_namespace(name=self.namespace)
            logger.info(f"Namespace '{self.namespace}' exists")
        except ApiException as e:
            if e.status == 404:
                namespace = client.V1Namespace(
                    metadata=client.V1ObjectMeta(name=self.namespace)
                )
                self.core_v1.create_namespace(body=namespace)
                logger.info(f"Created namespace '{self.namespace}'")
            else:
                raise

    def create_claim(self, claim: client.V1PersistentVolumeClaim):
        logger.info(f"Creating volume claim {claim.metadata.name}")
        return self.core_v1.create_namespaced_persistent_volume_claim(
            namespace=self.namespace,
            body=claim,
        )

    def delete_claim(self, name: str):
        self.core_v1.delete_namespaced_persistent_volume_claim(
            name=name,
            namespace=self.namespace,
            body=client.V1DeleteOptions(propagation_policy=BACKGROUND),
        )
        logger.info(f"Deleted volume claim {name}")

    def create_pod(self, pod: client.V1Pod):
        logger.info(f"Creating pod {pod.metadata.name}")
        return self.core_v1.create_namespaced_pod(
            namespace=self.namespace,
            body=pod,
        )

    def get_pod(self, name: str) -> client.V1Pod:
        return self.core_v1.read_namespaced_pod(
            name=name,
            namespace=self.namespace,
        )

    def list_pods(self, label_selector: Optional[str] = None) -> client.V1PodList:
        return self.core_v1.list_namespaced_pod(
            namespace=self.namespace,
            label_selector=label_selector,
        )

    def delete_pod(self, name: str, grace_period: int = 0):
        """Delete a pod and its dependents."""
        self.core_v1.delete_namespaced_pod(
            name=name,
            namespace=self.namespace,
            body=client.V1DeleteOptions(
                grace_period_seconds=grace_period,
                propagation_policy=BACKGROUND,
            ),
        )
        logger.info(f"Deleted pod {name}")
