"""Shared fakes for the Kubernetes API."""

import queue
import threading
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

def make_pod(name, phase="Pending", exit_code=None, reason=None, container="build", resource_version="1"):
    statuses = None
    if exit_code is not None:
        statuses = [
            client.V1ContainerStatus(
                name=container,
                image="alpine",
                image_id="",
                ready=False,
                restart_count=0,
                state=client.V1ContainerState(
                    terminated=client.V1ContainerStateTerminated(
                        exit_code=exit_code,
                        reason=reason,
                    )
                ),
            )
        ]
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, resource_version=resource_version),
        status=client.V1PodStatus(phase=phase, container_statuses=statuses),
    )

class FakeWatchResponse:
    """Open watch connection; reads block until it is closed."""

    def __init__(self):
        self.closed = threading.Event()

    def close(self):
        self.closed.set()

    def release_conn(self):
        pass

class FakeKube:
    """In-memory stand-in for KubeClient."""

    def __init__(self, namespace="ci"):
        self.namespace = namespace
        self.core_v1 = MagicMock()
        self.watch_responses = []
        self.core_v1.list_namespaced_pod.side_effect = self._open_watch
        self.pods = {}
        self.claims = {}
        self.created_pods = []
        self.deleted_pods = []
        self.deleted_claims = []
        self.failures = {}

    def _open_watch(self, *args, **kwargs):
        response = FakeWatchResponse()
        self.watch_responses.append(response)
        return response

    def create_claim(self, claim):
        name = claim.metadata.name
        if name in self.claims:
            raise ApiException(status=409, reason="Conflict")
        self.claims[name] = claim

    def delete_claim(self, name):
        self.deleted_claims.append(name)
        if name in self.failures:
            raise self.failures[name]
        if name not in self.claims:
            raise ApiException(status=404, reason="Not Found")
        del self.claims[name]

    def create_pod(self, pod):
        name = pod.metadata.name
        if name in self.pods:
            raise ApiException(status=409, reason="Conflict")
        self.created_pods.append(pod)
        self.pods[name] = make_pod(name)

    def get_pod(self, name):
        if name not in self.pods:
            raise ApiException(status=404, reason="Not Found")
        return self.pods[name]

    def list_pods(self, label_selector=None):
        return client.V1PodList(
            items=list(self.pods.values()),
            metadata=client.V1ListMeta(resource_version="1"),
        )

    def delete_pod(self, name, grace_period=0):
        self.deleted_pods.append((name, grace_period))
        if name in self.failures:
            raise self.failures[name]
        if name not in self.pods:
            raise ApiException(status=404, reason="Not Found")
        del self.pods[name]

class FakeWatch:
    """Delivers queued events until stopped or its response is closed."""

    def __init__(self, events, streams):
        self._events = events
        self._streams = streams
        self.stopped = False

    def stream(self, func, **kwargs):
        self._streams.append(kwargs)
        response = func(**kwargs)
        while not self.stopped and not response.closed.is_set():
            try:
                event = self._events.get(timeout=0.05)
            except queue.Empty:
                continue
            if isinstance(event, Exception):
                raise event
            yield event

    def stop(self):
        self.stopped = True

class FakeWatchFactory:
    def __init__(self):
        self.events = queue.Queue()
        self.streams = []

    def push(self, event_type, pod):
        self.events.put({"type": event_type, "object": pod})

    def fail(self, error):
        self.events.put(error)

    def __call__(self):
        return FakeWatch(self.events, self.streams)

@pytest.fixture
def kube():
    return FakeKube()

@pytest.fixture
def watch_factory():
    return FakeWatchFactory()
