"""
Step execution models.
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Dict
from enum import Enum

class PodPhase(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def of(cls, pod) -> "PodPhase":
        """
        Decode the phase of a Kubernetes pod.
        A missing status and the 'Unknown' phase count as pending.
        """
        status = getattr(pod, "status", None)
        phase = getattr(status, "phase", None)
        if not phase:
            return cls.PENDING
        try:
            return cls(phase.lower())
        except ValueError:
            return cls.PENDING

TERMINAL_PHASES = frozenset({PodPhase.SUCCEEDED, PodPhase.FAILED})
STARTED_PHASES = frozenset({PodPhase.RUNNING, PodPhase.SUCCEEDED, PodPhase.FAILED})

class Step(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    alias: str
    image: str
    entrypoint: List[str] = []
    command: List[str] = []
    working_dir: str = ""
    environment: Dict[str, str] = {}
    labels: Dict[str, str] = {}
    volumes: List[str] = []

class VolumeBinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    mount_path: str

class State(BaseModel):
    exit_code: int = 0
    exited: bool = False
    oom_killed: bool = False
