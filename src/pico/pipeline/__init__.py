"""Request pipeline: parameter assembly and staged execution."""

from pico.pipeline.context import PipelineContext
from pico.pipeline.executor import PipelineExecutor
from pico.pipeline.params import assemble_params, body_params

__all__ = [
    "PipelineContext",
    "PipelineExecutor",
    "assemble_params",
    "body_params",
]
