from kubestep.src.services.engine import KubernetesEngine
from kubestep.src.services.log_collector import open_log_stream, iter_log_lines
from kubestep.src.services.runner import RunResult, run_pipeline, run_step

__all__ = [
    "KubernetesEngine",
    "open_log_stream",
    "iter_log_lines",
    "RunResult",
    "run_pipeline",
    "run_step",
]
