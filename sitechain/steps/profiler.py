from __future__ import annotations

import logging
import time

from chainkit.artifact import Artifact
from chainkit.step_types import Step
from sitechain.framework.dispatch import PROFILER_STEP_ID

logger = logging.getLogger(__name__)

STARTED_AT_KEY = "profiler.started_at"
ELAPSED_MS_KEY = "profiler.elapsed_ms"


class Profiler(Step):
    """Measure how long the rest of the chain takes for each artifact."""

    step_id = PROFILER_STEP_ID

    def __init__(self, clock=time.perf_counter) -> None:
        self._clock = clock

    def transform(self, artifact: Artifact) -> Artifact:
        return artifact.with_metadata(**{STARTED_AT_KEY: self._clock()})

    def after_transform(self, artifact: Artifact) -> Artifact:
        started_at = artifact.metadata.get(STARTED_AT_KEY)
        if not isinstance(started_at, (int, float)):
            return artifact

        elapsed_ms = round((self._clock() - started_at) * 1000.0, 3)
        logger.debug("Profiled %s in %.3fms", artifact.input_path, elapsed_ms)
        return artifact.without_metadata(STARTED_AT_KEY).with_metadata(
            **{ELAPSED_MS_KEY: elapsed_ms}
        )
