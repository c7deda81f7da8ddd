"""
Kubernetes engine - runs pipeline steps as pods sharing one volume.
"""

import logging
import threading
from typing import Dict, Optional

from kubernetes.client.rest import ApiException

from kubestep.src.config import Settings, get_settings
from kubestep.src.errors import EngineConfigError, WorkloadObservationError
from kubestep.src.k8s import (
    KubeClient,
    PodWatcher,
    build_claim,
    build_pod,
    dns_name,
    pod_state,
    volume_name,
)
from kubestep.src.models import (
    STARTED_PHASES,
    TERMINAL_PHASES,
    PipelineConfig,
    State,
    Step,
)
from kubestep.src.services.log_collector import open_log_stream

logger = logging.getLogger(__name__)

def parse_labels(selector: str) -> Dict[str, str]:
    """
    Turn an equality selector like 'a=b,c=d' into labels.
    Set-based and inequality terms cannot label a pod and are rejected.
    """
    labels = {}
    for term in selector.split(","):
        term = term.strip()
        if not term:
            continue
        key, sep, value = term.partition("=")
        key = key.strip()
        value = value[1:] if value.startswith("=") else value
        if not sep or not key or key.endswith("!") or " " in key:
            raise EngineConfigError(f"Cannot derive pod labels from selector '{selector}'")
        labels[key] = value.strip()
    return labels

class KubernetesEngine:
    """
    Executes pipeline steps on Kubernetes.

    The engine keeps no per-pipeline state: callers run setup before
    exec, exec before wait or tail, and destroy last.
    """

    def __init__(
        self,
        kube: KubeClient,
        storage_class: str = "",
        volume_size: str = "1G",
        watcher: Optional[PodWatcher] = None,
        labels: Optional[Dict[str, str]] = None,
        wait_timeout: Optional[float] = None,
        destroy_grace_period: int = 0,
        kill_grace_period: int = 5,
    ):
        self.kube = kube
        self.storage_class = storage_class
        self.volume_size = volume_size
        self.labels = dict(labels or {})
        self.watcher = watcher or PodWatcher(
            kube,
            label_selector=",".join(f"{k}={v}" for k, v in self.labels.items()) or None,
        )
        self.wait_timeout = wait_timeout
        self.destroy_grace_period = destroy_grace_period
        self.kill_grace_period = kill_grace_period

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "KubernetesEngine":
        settings = settings or get_settings()
        labels = parse_labels(settings.pod_label_selector)

        kube = KubeClient.connect(
            endpoint=settings.k8s_endpoint,
            kubeconfig_path=settings.kubeconfig_path,
            namespace=settings.k8s_namespace,
            in_cluster=settings.k8s_in_cluster,
        )
        watcher = PodWatcher(
            kube,
            label_selector=settings.pod_label_selector or None,
            watch_timeout=settings.watch_timeout,
            retry_interval=settings.watch_retry_interval,
            poll_interval=settings.wait_poll_interval,
        )

        return cls(
            kube,
            storage_class=settings.storage_class,
            volume_size=settings.volume_size,
            watcher=watcher,
            labels=labels,
            wait_timeout=settings.wait_timeout,
            destroy_grace_period=settings.destroy_grace_period,
            kill_grace_period=settings.kill_grace_period,
        )

    def setup(self, config: PipelineConfig):
        """Create the pipeline's shared volume claim."""
        claim = build_claim(
            volume_name(config.primary_volume().name),
            self.storage_class,
            self.kube.namespace,
            size=self.volume_size,
        )
        self.kube.create_claim(claim)

    def exec(self, step: Step):
        """Start the step's pod without waiting for it."""
        pod = build_pod(step, self.kube.namespace, labels=self.labels)
        self.kube.create_pod(pod)

    def wait(
        self,
        step: Step,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> State:
        """Block until the step's pod finishes and return its state."""
        pod_name = dns_name(step.name)
        self.watcher.wait_for(
            pod_name,
            TERMINAL_PHASES,
            timeout=self._timeout(timeout),
            cancel=cancel,
        )

        # Container statuses of the event snapshot may lag the phase
        try:
            pod = self.kube.get_pod(pod_name)
        except ApiException as e:
            raise WorkloadObservationError(
                f"Failed to read finished pod {pod_name}: {e.reason}"
            ) from e
        state = pod_state(pod, step.alias)
        logger.info(f"Step {step.name} exited with code {state.exit_code}")
        return state

    def tail(
        self,
        step: Step,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ):
        """Block until the step's pod has started and return its log stream."""
        pod_name = dns_name(step.name)
        self.watcher.wait_for(
            pod_name,
            STARTED_PHASES,
            timeout=self._timeout(timeout),
            cancel=cancel,
        )
        return open_log_stream(self.kube, pod_name, container=step.alias)

    def kill(self, step: Step):
        """Stop a running step."""
        self.kube.delete_pod(dns_name(step.name), grace_period=self.kill_grace_period)

    def destroy(self, config: PipelineConfig):
        """
        Delete every step's pod, then the shared volume claim.
        Only a failure to delete the claim is raised.
        """
        for step in config.steps():
            pod_name = dns_name(step.name)
            try:
                self.kube.delete_pod(pod_name, grace_period=self.destroy_grace_period)
            except ApiException as e:
                if e.status == 404:
                    logger.debug(f"Pod {pod_name} already gone")
                else:
                    logger.warning(f"Failed to delete pod {pod_name}: {e.reason}")
            except Exception as e:
                logger.warning(f"Failed to delete pod {pod_name}: {e}")

        self.kube.delete_claim(volume_name(config.primary_volume().name))

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return timeout if timeout is not None else self.wait_timeout
