"""
Stream logs from Kubernetes pods.
"""

import logging
from typing import Iterator, Optional

from kubestep.src.k8s.client import KubeClient

logger = logging.getLogger(__name__)

def open_log_stream(kube: KubeClient, pod_name: str, container: Optional[str] = None):
    """
    Open a follow-mode log stream for a pod's container.
    The returned response is owned by the caller, who must close it.
    """
    logger.debug(f"Opening log stream for pod {pod_name}")
    return kube.core_v1.read_namespaced_pod_log(
        name=pod_name,
        namespace=kube.namespace,
        container=container,
        follow=True,
        _preload_content=False,
    )

def iter_log_lines(stream) -> Iterator[str]:
    """
    Yield decoded log lines from an open log stream.
    The stream is released once exhausted or abandoned.
    """
    pending = b""
    try:
        for chunk in stream.stream():
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                yield line.decode("utf-8", errors="replace")
        if pending:
            yield pending.decode("utf-8", errors="replace")
    finally:
        stream.close()
        stream.release_conn()
