"""
Kubernetes object builders for pipeline steps.
"""

from kubernetes import client
from typing import List, Dict, Optional

from kubestep.src.errors import WorkloadObservationError
from kubestep.src.k8s.naming import dns_name, parse_volume_binding
from kubestep.src.models.step import Step, State

CLONE_ALIAS = "clone"
OOM_KILLED = "OOMKilled"

def map_to_env_vars(env: Optional[Dict[str, str]]) -> List[client.V1EnvVar]:
    """Convert a mapping into container environment variables."""
    if not env:
        return []
    return [client.V1EnvVar(name=key, value=value) for key, value in sorted(env.items())]

def build_claim(
    volume_name: str,
    storage_class: str,
    namespace: str,
    size: str = "1G",
) -> client.V1PersistentVolumeClaim:
    """
    Build the claim backing a pipeline's shared volume.
    """
    spec = client.V1PersistentVolumeClaimSpec(
        access_modes=["ReadWriteOnce"],
        storage_class_name=storage_class or None,
        resources=client.V1VolumeResourceRequirements(
            requests={"storage": size},
        ),
    )

    return client.V1PersistentVolumeClaim(
        api_version="v1",
        kind="PersistentVolumeClaim",
        metadata=client.V1ObjectMeta(
            name=dns_name(volume_name),
            namespace=namespace,
        ),
        spec=spec,
    )

def build_pod(
    step: Step,
    namespace: str,
    labels: Optional[Dict[str, str]] = None,
) -> client.V1Pod:
    """
    Build the pod running a single pipeline step.
    """
    bindings = [parse_volume_binding(v) for v in step.volumes]

    working_dir = step.working_dir
    if step.alias == CLONE_ALIAS and bindings:
        # The checkout writes straight into the shared volume
        working_dir = bindings[0].mount_path

    volumes = []
    claimed = set()
    for binding in bindings:
        if binding.name in claimed:
            continue
        claimed.add(binding.name)
        volumes.append(client.V1Volume(
            name=binding.name,
            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                claim_name=binding.name,
                read_only=False,
            ),
        ))

    container = client.V1Container(
        name=step.alias,
        image=step.image,
        command=list(step.entrypoint) or None,
        args=list(step.command) or None,
        working_dir=working_dir or None,
        env=map_to_env_vars(step.environment) or None,
        volume_mounts=[
            client.V1VolumeMount(name=b.name, mount_path=b.mount_path)
            for b in bindings
        ] or None,
    )

    pod_spec = client.V1PodSpec(
        containers=[container],
        volumes=volumes or None,
        restart_policy="Never",  # A step runs at most once
    )

    pod_labels = dict(step.labels)
    pod_labels.update(labels or {})

    return client.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=client.V1ObjectMeta(
            name=dns_name(step.name),
            namespace=namespace,
            labels=pod_labels,
        ),
        spec=pod_spec,
    )

def pod_state(pod: client.V1Pod, container_name: Optional[str] = None) -> State:
    """
    Read the execution state of a finished pod's step container.
    """
    statuses = (pod.status.container_statuses if pod.status else None) or []

    status = None
    for candidate in statuses:
        if container_name is None or candidate.name == container_name:
            status = candidate
            break
    if status is None and statuses:
        status = statuses[0]

    terminated = status.state.terminated if status and status.state else None
    if terminated is None:
        raise WorkloadObservationError(
            f"Pod {pod.metadata.name} has no terminated container status"
        )

    return State(
        exit_code=terminated.exit_code,
        exited=True,
        oom_killed=terminated.reason == OOM_KILLED,
    )
