from sitechain.steps.profiler import Profiler
from sitechain.steps.registry import builtin_step_registry, get_step_registry

__all__ = ["Profiler", "builtin_step_registry", "get_step_registry"]
