from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from chainkit.step_registry import StepRegistry
from chainkit.step_types import Step, StepRef


@lru_cache(maxsize=1)
def builtin_step_registry() -> StepRegistry:
    # Single import point for the steps this package ships.
    from sitechain.steps.profiler import Profiler  # noqa: PLC0415

    return StepRegistry.from_refs([StepRef.of(Profiler(), tags=("diagnostic",))])


def get_step_registry(extra: Iterable[Step | StepRef] = ()) -> StepRegistry:
    """Built-in steps plus the caller's concrete transformation steps."""

    extra = tuple(extra)
    if not extra:
        return builtin_step_registry()
    return builtin_step_registry().merged(extra)
