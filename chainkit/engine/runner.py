"""Chain executor.

This module is intentionally app-agnostic and must not import `sitechain.*`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from chainkit.artifact import Artifact
from chainkit.errors import StepContractViolation, StepError
from chainkit.step_registry import StepRegistry
from chainkit.step_types import Runnable


class StepRecorder(Protocol):
    def on_step_start(
        self, log: logging.Logger, step_id: str, artifact: Artifact, remaining: tuple[str, ...]
    ) -> None:
        ...

    def on_step_end(
        self, log: logging.Logger, step_id: str, artifact: Artifact, outputs: list[Artifact]
    ) -> None:
        ...

    def on_step_error(
        self, log: logging.Logger, step_id: str, artifact: Artifact, exc: Exception
    ) -> None:
        ...


class DefaultStepRecorder:
    def on_step_start(
        self, log: logging.Logger, step_id: str, artifact: Artifact, remaining: tuple[str, ...]
    ) -> None:
        log.debug(
            "Step: %s (input=%s, remaining=%d)", step_id, artifact.input_path, len(remaining)
        )

    def on_step_end(
        self, log: logging.Logger, step_id: str, artifact: Artifact, outputs: list[Artifact]
    ) -> None:
        log.debug("Completed step %s (input=%s, outputs=%d)", step_id, artifact.input_path, len(outputs))

    def on_step_error(
        self, log: logging.Logger, step_id: str, artifact: Artifact, exc: Exception
    ) -> None:
        log.error("Step failed: %s (input=%s, %s)", step_id, artifact.input_path, exc)


class NullStepRecorder:
    def on_step_start(
        self, log: logging.Logger, step_id: str, artifact: Artifact, remaining: tuple[str, ...]
    ) -> None:
        return

    def on_step_end(
        self, log: logging.Logger, step_id: str, artifact: Artifact, outputs: list[Artifact]
    ) -> None:
        return

    def on_step_error(
        self, log: logging.Logger, step_id: str, artifact: Artifact, exc: Exception
    ) -> None:
        return


class ChainRunner:
    """Runs chains of registered steps against artifacts.

    The runner keeps no per-run state, so one instance can serve concurrent
    dispatches as long as its registry is not swapped out underneath them.
    """

    def __init__(
        self,
        registry: StepRegistry,
        *,
        logger: logging.Logger | None = None,
        recorder: StepRecorder | None = None,
    ):
        if not isinstance(registry, StepRegistry):
            raise TypeError(f"registry must be a StepRegistry (type={type(registry).__name__})")
        self._registry = registry
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._recorder = recorder or DefaultStepRecorder()
        self._validate_recorder(self._recorder)

    @property
    def registry(self) -> StepRegistry:
        return self._registry

    def execute(self, artifact: Artifact, chain: Sequence[str]) -> list[Artifact]:
        if not isinstance(artifact, Artifact):
            raise TypeError(f"execute() needs an Artifact (type={type(artifact).__name__})")
        chain = tuple(chain)
        if not chain:
            return [artifact]

        step_id, remaining = chain[0], chain[1:]
        try:
            step = self.step_for(step_id)
        except StepContractViolation as exc:
            self._record_error(step_id, artifact, exc)
            raise

        self._recorder.on_step_start(self._logger, step_id, artifact, remaining)
        try:
            outputs = step.run(artifact, remaining, runner=self)
        except StepError as exc:
            if exc.step_id == step_id and exc.artifact is artifact:
                self._record_error(step_id, artifact, exc)
            raise
        except StepContractViolation as exc:
            if exc.step_id == step_id:
                self._record_error(step_id, artifact, exc)
            raise

        if not isinstance(outputs, list) or not all(isinstance(item, Artifact) for item in outputs):
            violation = StepContractViolation(
                step_id,
                f"run() must return a list of Artifacts (type={type(outputs).__name__})",
            )
            self._record_error(step_id, artifact, violation)
            raise violation
        self._recorder.on_step_end(self._logger, step_id, artifact, outputs)
        return outputs

    def continue_chain(
        self, artifacts: Iterable[Artifact], remaining: Sequence[str]
    ) -> list[Artifact]:
        remaining = tuple(remaining)
        if not remaining:
            return list(artifacts)

        outputs: list[Artifact] = []
        for artifact in artifacts:
            outputs.extend(self.execute(artifact, remaining))
        return outputs

    def step_for(self, step_id: str) -> Runnable:
        step = self._registry.get(step_id)
        run = getattr(step, "run", None)
        if run is None or not callable(run):
            raise StepContractViolation(step_id, "implementation has no callable run() entry point")
        return step

    def _record_error(self, step_id: str, artifact: Artifact, exc: Exception) -> None:
        try:
            self._recorder.on_step_error(self._logger, step_id, artifact, exc)
        except Exception:
            self._logger.exception("Step recorder failed during error handling for %s", step_id)

    def _validate_recorder(self, recorder: StepRecorder) -> None:
        required = ("on_step_start", "on_step_end", "on_step_error")
        for name in required:
            method = getattr(recorder, name, None)
            if method is None or not callable(method):
                raise TypeError(f"Step recorder missing required method: {name}")
