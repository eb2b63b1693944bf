from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from chainkit.artifact import Artifact
from chainkit.engine.runner import ChainRunner, StepRecorder
from chainkit.step_registry import StepRegistry
from chainkit.step_types import Step, StepRef
from sitechain.framework.config import PipelineConfig
from sitechain.framework.defaults import DEFAULT_CHAINS
from sitechain.framework.dispatch import ChainTable
from sitechain.steps.registry import get_step_registry


class Pipeline:
    """Dispatch artifacts to their chain and run it.

    Both the table and the registry are immutable snapshots; build a new
    `Pipeline` to change either.
    """

    def __init__(
        self,
        table: ChainTable,
        registry: StepRegistry,
        *,
        logger: logging.Logger | None = None,
        recorder: StepRecorder | None = None,
        strict: bool = False,
        max_workers: int | None = None,
    ):
        if not isinstance(table, ChainTable):
            raise TypeError(f"table must be a ChainTable (type={type(table).__name__})")
        if strict:
            table.validate(registry)
        self.table = table
        self.registry = registry
        self.max_workers = max_workers
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._runner = ChainRunner(registry, logger=self._logger, recorder=recorder)

    @classmethod
    def from_config(
        cls,
        cfg: PipelineConfig,
        *,
        steps: Iterable[Step | StepRef] = (),
        logger: logging.Logger | None = None,
        recorder: StepRecorder | None = None,
    ) -> "Pipeline":
        table = ChainTable.build(cfg.chains, DEFAULT_CHAINS if cfg.include_defaults else ())
        return cls(
            table,
            get_step_registry(steps),
            logger=logger,
            recorder=recorder,
            strict=cfg.strict,
            max_workers=cfg.max_workers,
        )

    def chain_for(self, artifact: Artifact) -> tuple[str, ...]:
        return self.table.resolve(artifact.input_path)

    def run(self, artifact: Artifact) -> list[Artifact]:
        chain = self.chain_for(artifact)
        self._logger.debug("Dispatching %s to chain %s", artifact.input_path, list(chain))
        return self._runner.execute(artifact, chain)

    def run_many(
        self, artifacts: Sequence[Artifact], *, max_workers: int | None = None
    ) -> list[list[Artifact]]:
        """Run independent dispatches concurrently; results keep input order."""

        workers = max_workers if max_workers is not None else self.max_workers
        items = list(artifacts)
        if workers == 1 or len(items) <= 1:
            return [self.run(item) for item in items]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.run, item) for item in items]
            return [future.result() for future in futures]
