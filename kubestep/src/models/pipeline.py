"""
Pipeline configuration models and loader.
"""

import json
from pathlib import Path
from typing import Dict, Iterator, List, Union

import yaml
from pydantic import BaseModel, ValidationError

from kubestep.src.errors import InvalidPipelineError
from kubestep.src.models.step import Step

class Volume(BaseModel):
    name: str
    driver: str = "local"
    driver_opts: Dict[str, str] = {}

class Stage(BaseModel):
    name: str
    alias: str = ""
    steps: List[Step]

class PipelineConfig(BaseModel):
    stages: List[Stage]
    volumes: List[Volume] = []

    def steps(self) -> Iterator[Step]:
        """Iterate every step of every stage, in order."""
        for stage in self.stages:
            yield from stage.steps

    def primary_volume(self) -> Volume:
        """The volume shared by all steps of the pipeline."""
        if not self.volumes:
            raise InvalidPipelineError("Pipeline declares no volumes")
        return self.volumes[0]

def parse_pipeline(content: str) -> PipelineConfig:
    """Parse a pipeline configuration from YAML (or JSON) text."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise InvalidPipelineError(f"Invalid YAML: {e}")

    if not data:
        raise InvalidPipelineError("Empty pipeline configuration")

    if not isinstance(data, dict):
        raise InvalidPipelineError("Pipeline configuration must be a dictionary")

    try:
        return PipelineConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidPipelineError(f"Invalid pipeline configuration: {e}")

def load_pipeline(path: Union[str, Path]) -> PipelineConfig:
    """Load a pipeline configuration file."""
    path = Path(path)
    try:
        content = path.read_text()
    except OSError as e:
        raise InvalidPipelineError(f"Cannot read {path}: {e}")

    if path.suffix == ".json":
        try:
            return PipelineConfig.model_validate(json.loads(content))
        except (ValueError, ValidationError) as e:
            raise InvalidPipelineError(f"Invalid pipeline configuration: {e}")

    return parse_pipeline(content)
