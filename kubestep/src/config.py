from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Kubernetes settings
    k8s_endpoint: str = ""  # Overrides the server URL from kubeconfig
    kubeconfig_path: Optional[str] = None
    k8s_in_cluster: bool = False  # Set True when running inside K8s
    k8s_namespace: str = "kubestep"

    # Shared pipeline volume
    storage_class: str = ""  # Empty uses the cluster default class
    volume_size: str = "1G"

    # Watch settings
    pod_label_selector: str = "app=kubestep"
    watch_timeout: int = 60  # Server-side watch window, re-established after
    watch_retry_interval: float = 5.0
    wait_poll_interval: float = 0.5
    wait_timeout: Optional[float] = None  # No deadline by default

    # Deletion settings
    destroy_grace_period: int = 0  # Immediately
    kill_grace_period: int = 5

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
