"""
Pod watcher - turns pod watch events into blocking waits.

A single list-then-watch subscription per watcher serves every waiter.
The subscription thread starts with the first waiter and stops when the
last one detaches.
"""

import functools
import logging
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

from kubernetes import client, watch
from kubernetes.client.rest import ApiException

from kubestep.src.errors import (
    WaitCancelledError,
    WaitTimeoutError,
    WorkloadObservationError,
)
from kubestep.src.k8s.client import KubeClient
from kubestep.src.models.step import PodPhase

logger = logging.getLogger(__name__)

ADDED = "ADDED"
DELETED = "DELETED"
ERROR = "ERROR"

class _Waiter:
    def __init__(self, pod_name: str, phases: frozenset):
        self.pod_name = pod_name
        self.phases = phases
        self.done = threading.Event()
        self.pod: Optional[client.V1Pod] = None
        self.error: Optional[Exception] = None

    def offer(self, event_type: str, pod: client.V1Pod):
        if self.done.is_set():
            return
        if event_type == DELETED:
            self.error = WorkloadObservationError(f"Pod {self.pod_name} was deleted")
            self.done.set()
        elif PodPhase.of(pod) in self.phases:
            self.pod = pod
            self.done.set()

class _Subscription:
    """A watch thread and the HTTP response it is currently reading."""

    def __init__(self):
        self.stop = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._response = None

    def track(self, response):
        with self._lock:
            self._response = response
        if self.stop.is_set():
            response.close()

    def close(self):
        """Stop the thread and close its open watch so the read returns now."""
        self.stop.set()
        with self._lock:
            response = self._response
        if response is not None:
            response.close()

class PodWatcher:
    def __init__(
        self,
        kube: KubeClient,
        label_selector: Optional[str] = None,
        watch_timeout: int = 60,
        retry_interval: float = 5.0,
        poll_interval: float = 0.5,
        watch_factory: Callable[[], watch.Watch] = watch.Watch,
    ):
        self._kube = kube
        self._label_selector = label_selector
        self._watch_timeout = watch_timeout
        self._retry_interval = retry_interval
        self._poll_interval = poll_interval
        self._watch_factory = watch_factory

        self._lock = threading.Lock()
        self._waiters: Dict[str, List[_Waiter]] = {}
        self._subscription: Optional[_Subscription] = None

    def wait_for(
        self,
        pod_name: str,
        phases: Iterable[PodPhase],
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> client.V1Pod:
        """
        Block until the pod reaches one of the given phases and return it.

        Raises WorkloadObservationError if the pod disappears,
        WaitTimeoutError once the timeout elapses and WaitCancelledError
        when the cancel event is set.
        """
        waiter = _Waiter(pod_name, frozenset(phases))
        self._attach(waiter)
        try:
            # The pod may have reached the phase before the subscription
            try:
                pod = self._kube.get_pod(pod_name)
            except ApiException as e:
                raise WorkloadObservationError(
                    f"Failed to read pod {pod_name}: {e.reason}"
                ) from e
            waiter.offer(ADDED, pod)
            self._block(waiter, timeout, cancel)
        finally:
            self._detach(waiter)

        if waiter.error is not None:
            raise waiter.error
        return waiter.pod

    def active_waiters(self) -> int:
        with self._lock:
            return sum(len(w) for w in self._waiters.values())

    def is_watching(self) -> bool:
        with self._lock:
            return self._subscription is not None

    def _block(self, waiter, timeout, cancel):
        deadline = None if timeout is None else time.monotonic() + timeout

        while not waiter.done.is_set():
            if cancel is not None and cancel.is_set():
                raise WaitCancelledError(f"Wait for pod {waiter.pod_name} cancelled")

            interval = self._poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise WaitTimeoutError(
                        f"Pod {waiter.pod_name} did not reach "
                        f"{sorted(p.value for p in waiter.phases)} within {timeout}s"
                    )
                interval = min(interval, remaining)

            waiter.done.wait(interval)

    def _attach(self, waiter: _Waiter):
        with self._lock:
            self._waiters.setdefault(waiter.pod_name, []).append(waiter)
            if self._subscription is None:
                subscription = _Subscription()
                subscription.thread = threading.Thread(
                    target=self._run,
                    args=(subscription,),
                    name="kubestep-pod-watch",
                    daemon=True,
                )
                self._subscription = subscription
                subscription.thread.start()
                logger.debug("Started pod watch")

    def _detach(self, waiter: _Waiter):
        with self._lock:
            waiters = self._waiters.get(waiter.pod_name, [])
            if waiter in waiters:
                waiters.remove(waiter)
            if not waiters:
                self._waiters.pop(waiter.pod_name, None)
            subscription = None
            if not self._waiters and self._subscription is not None:
                subscription = self._subscription
                self._subscription = None

        if subscription is not None:
            subscription.close()
            logger.debug("Stopped pod watch")

    def _dispatch(self, event_type: str, pod: client.V1Pod):
        name = pod.metadata.name if pod.metadata else None
        with self._lock:
            waiters = list(self._waiters.get(name, ()))
        for waiter in waiters:
            waiter.offer(event_type, pod)

    def _run(self, subscription: _Subscription):
        stop = subscription.stop
        resource_version = None

        while not stop.is_set():
            try:
                if resource_version is None:
                    resource_version = self._resync()
                resource_version = self._follow(subscription, resource_version)
            except ApiException as e:
                if stop.is_set():
                    break
                if e.status == 410:
                    logger.info("Pod watch expired, relisting")
                    resource_version = None
                    continue
                logger.error(f"Pod watch failed: {e}")
                resource_version = None
                stop.wait(self._retry_interval)
            except Exception as e:
                if stop.is_set():
                    break
                logger.exception(f"Pod watch error: {e}")
                resource_version = None
                stop.wait(self._retry_interval)

    def _resync(self) -> str:
        """List current pods and return the version to watch from."""
        pods = self._kube.list_pods(label_selector=self._label_selector)
        for pod in pods.items:
            self._dispatch(ADDED, pod)
        return pods.metadata.resource_version

    def _follow(self, subscription: _Subscription, resource_version: str) -> Optional[str]:
        """Deliver watch events until the window closes or the watch stops."""
        list_pods = self._kube.core_v1.list_namespaced_pod

        @functools.wraps(list_pods)
        def open_watch(*args, **kwargs):
            response = list_pods(*args, **kwargs)
            subscription.track(response)
            return response

        stop = subscription.stop
        w = self._watch_factory()
        try:
            for event in w.stream(
                open_watch,
                namespace=self._kube.namespace,
                label_selector=self._label_selector,
                resource_version=resource_version,
                timeout_seconds=self._watch_timeout,
            ):
                if stop.is_set():
                    break

                if event["type"] == ERROR:
                    logger.warning(f"Pod watch error event: {event.get('raw_object')}")
                    return None

                pod = event["object"]
                resource_version = pod.metadata.resource_version
                self._dispatch(event["type"], pod)
        finally:
            w.stop()

        return resource_version
