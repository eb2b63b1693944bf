"""Failure taxonomy for chain execution.

Every failure that escapes a step is surfaced as a `PipelineError`. Step frames
forward `PipelineError` instances untouched, so a failure raised deep in a chain is
enriched once, at the innermost frame, and keeps that frame's context all the way up.
"""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chainkit.artifact import Artifact


class PipelineError(Exception):
    """Base class for failures that already carry pipeline context."""


class StepContractViolation(PipelineError, LookupError):
    def __init__(self, step_id: str, reason: str) -> None:
        self.step_id = step_id
        self.reason = reason
        super().__init__(f"Step contract violation for {step_id!r}: {reason}")


class StepError(PipelineError):
    """A step failure enriched with the context it happened in."""

    def __init__(
        self,
        *,
        payload: BaseException,
        kind: str,
        step_id: str,
        remaining: tuple[str, ...],
        artifact: "Artifact",
        trace: tuple[str, ...] = (),
    ) -> None:
        self.payload = payload
        self.kind = kind
        self.step_id = step_id
        self.remaining = remaining
        self.artifact = artifact
        self.trace = trace
        super().__init__(
            f"Step {step_id} failed on {artifact.input_path}: {kind}: {payload}"
        )

    @classmethod
    def capture(
        cls,
        exc: BaseException,
        *,
        step_id: str,
        remaining: Sequence[str],
        artifact: "Artifact",
    ) -> "StepError":
        return cls(
            payload=exc,
            kind=failure_kind(exc),
            step_id=step_id,
            remaining=tuple(remaining),
            artifact=artifact,
            trace=tuple(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )

    def describe(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "kind": self.kind,
            "payload": str(self.payload),
            "input_path": self.artifact.input_path,
            "remaining": list(self.remaining),
        }


def failure_kind(exc: BaseException) -> str:
    cls = type(exc)
    module = cls.__module__
    if module in ("builtins", "__main__"):
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


def enrich(
    exc: Exception,
    *,
    step_id: str,
    remaining: Sequence[str],
    artifact: "Artifact",
) -> PipelineError:
    if isinstance(exc, PipelineError):
        return exc
    return StepError.capture(exc, step_id=step_id, remaining=remaining, artifact=artifact)
