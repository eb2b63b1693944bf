"""Engine primitives for running step chains."""

from chainkit.engine.runner import ChainRunner, DefaultStepRecorder, NullStepRecorder, StepRecorder

__all__ = [
    "ChainRunner",
    "DefaultStepRecorder",
    "NullStepRecorder",
    "StepRecorder",
]
