from kubestep.src.models.step import (
    PodPhase,
    TERMINAL_PHASES,
    STARTED_PHASES,
    Step,
    VolumeBinding,
    State,
)
from kubestep.src.models.pipeline import (
    Volume,
    Stage,
    PipelineConfig,
    parse_pipeline,
    load_pipeline,
)

__all__ = [
    "PodPhase",
    "TERMINAL_PHASES",
    "STARTED_PHASES",
    "Step",
    "VolumeBinding",
    "State",
    "Volume",
    "Stage",
    "PipelineConfig",
    "parse_pipeline",
    "load_pipeline",
]
