"""Reusable chain kernel (artifact, step contract, registry, executor).

This package is intentionally independent of `sitechain.*`. Which chains exist,
how paths map to them and which concrete steps are registered are decisions of
the consuming application.
"""

from chainkit.artifact import Artifact
from chainkit.config_namespace import ConfigNamespace
from chainkit.engine.runner import ChainRunner, DefaultStepRecorder, NullStepRecorder, StepRecorder
from chainkit.errors import PipelineError, StepContractViolation, StepError, enrich
from chainkit.step_registry import StepRegistry
from chainkit.step_types import Continue, Halt, Outcome, Runnable, Step, StepRef

__all__ = [
    "Artifact",
    "ChainRunner",
    "ConfigNamespace",
    "Continue",
    "DefaultStepRecorder",
    "Halt",
    "NullStepRecorder",
    "Outcome",
    "PipelineError",
    "Runnable",
    "Step",
    "StepContractViolation",
    "StepError",
    "StepRecorder",
    "StepRef",
    "StepRegistry",
    "enrich",
]
