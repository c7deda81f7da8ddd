"""
Pipeline runner - drives the engine through a whole pipeline.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

from pydantic import BaseModel

from kubestep.src.models import PipelineConfig, State, Step
from kubestep.src.services.engine import KubernetesEngine
from kubestep.src.services.log_collector import iter_log_lines

logger = logging.getLogger(__name__)

class RunResult(BaseModel):
    states: Dict[str, State] = {}
    errors: Dict[str, str] = {}

    @property
    def succeeded(self) -> bool:
        return not self.errors and all(
            s.exited and s.exit_code == 0 for s in self.states.values()
        )

def forward_logs(engine: KubernetesEngine, step: Step, cancel: Optional[threading.Event] = None):
    """Copy a step's log lines to the logger until the stream ends."""
    step_logger = logging.getLogger(f"{__name__}.{step.name}")
    try:
        stream = engine.tail(step, cancel=cancel)
        for line in iter_log_lines(stream):
            step_logger.info(line)
    except Exception as e:
        logger.warning(f"Log stream for step {step.name} ended: {e}")

def run_step(
    engine: KubernetesEngine,
    step: Step,
    cancel: Optional[threading.Event] = None,
) -> State:
    """Execute a single step and wait for it to finish."""
    engine.exec(step)

    tail = threading.Thread(
        target=forward_logs,
        args=(engine, step, cancel),
        name=f"kubestep-logs-{step.name}",
        daemon=True,
    )
    tail.start()

    state = engine.wait(step, cancel=cancel)
    tail.join(timeout=5)
    return state

def run_pipeline(
    engine: KubernetesEngine,
    config: PipelineConfig,
    cancel: Optional[threading.Event] = None,
) -> RunResult:
    """
    Run every stage in order, its steps in parallel.
    Stops after the first stage with a failing step; the pipeline's
    resources are always destroyed.
    """
    result = RunResult()

    logger.info(f"Starting pipeline with {len(config.stages)} stages")
    engine.setup(config)

    try:
        for stage in config.stages:
            logger.info(f"Executing stage {stage.name}")

            with ThreadPoolExecutor(max_workers=max(len(stage.steps), 1)) as pool:
                futures = {
                    step.name: pool.submit(run_step, engine, step, cancel)
                    for step in stage.steps
                }

                for name, future in futures.items():
                    try:
                        state = future.result()
                        result.states[name] = state
                        if state.exit_code == 0:
                            logger.info(f"Step {name} succeeded")
                        else:
                            logger.error(f"Step {name} failed with exit code {state.exit_code}")
                    except Exception as e:
                        logger.exception(f"Step {name} failed with exception")
                        result.errors[name] = str(e)

            if not result.succeeded:
                break  # Stop on first failure
    finally:
        engine.destroy(config)

    final_status = "succeeded" if result.succeeded else "failed"
    logger.info(f"Pipeline finished with status: {final_status}")
    return result
