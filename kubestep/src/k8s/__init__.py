from kubestep.src.k8s.client import (
    KubeClient,
    load_api_client,
)
from kubestep.src.k8s.naming import (
    dns_name,
    parse_volume_spec,
    parse_volume_binding,
    volume_name,
    volume_mount_path,
)
from kubestep.src.k8s.pod_builder import (
    build_claim,
    build_pod,
    map_to_env_vars,
    pod_state,
)
from kubestep.src.k8s.watcher import PodWatcher

__all__ = [
    "KubeClient",
    "load_api_client",
    "dns_name",
    "parse_volume_spec",
    "parse_volume_binding",
    "volume_name",
    "volume_mount_path",
    "build_claim",
    "build_pod",
    "map_to_env_vars",
    "pod_state",
    "PodWatcher",
]
