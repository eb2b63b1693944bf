from sitechain.framework.config import PipelineConfig
from sitechain.framework.defaults import DEFAULT_CHAINS, default_table
from sitechain.framework.dispatch import PROFILER_STEP_ID, ChainEntry, ChainTable
from sitechain.framework.pipeline import Pipeline

__all__ = [
    "DEFAULT_CHAINS",
    "PROFILER_STEP_ID",
    "ChainEntry",
    "ChainTable",
    "Pipeline",
    "PipelineConfig",
    "default_table",
]
