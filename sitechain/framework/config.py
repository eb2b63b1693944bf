from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from chainkit.config_namespace import ConfigNamespace
from sitechain.framework.dispatch import PROFILER_STEP_ID, ChainEntry

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class PipelineConfig:
    chains: tuple[ChainEntry, ...] = ()
    include_defaults: bool = True
    strict: bool = False
    max_workers: int | None = None
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        return int(getattr(logging, self.log_level))

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any] | None) -> tuple["PipelineConfig", list[str]]:
        """
        Parse the `pipeline` section of a config mapping.

        Returns the config and a list of non-fatal warnings. Unknown keys, wrong
        types and malformed chain entries raise with the dotted key path.
        """

        if cfg is None:
            cfg = {}
        if not isinstance(cfg, Mapping):
            raise TypeError(f"Config must be a mapping (type={type(cfg).__name__})")

        warnings: list[str] = []
        root = ConfigNamespace(dict(cfg), path="")
        ns = root.namespace("pipeline")

        strict = ns.get_bool("strict", default=False)
        include_defaults = ns.get_bool("include_defaults", default=True)
        max_workers = ns.get_optional_int("max_workers", default=None, min_value=1)
        log_level = ns.get_str("log_level", default="INFO", choices=LOG_LEVELS) or "INFO"

        chains: list[ChainEntry] = []
        for item in ns.get_list_mapping("chains", default=[]):
            chains.append(_parse_chain_entry(item, warnings))

        ns.assert_consumed()

        return (
            cls(
                chains=tuple(chains),
                include_defaults=include_defaults,
                strict=strict,
                max_workers=max_workers,
                log_level=log_level,
            ),
            warnings,
        )


def _parse_chain_entry(item: ConfigNamespace, warnings: list[str]) -> ChainEntry:
    has_extension = item.has("extension")
    has_pattern = item.has("pattern")
    if has_extension == has_pattern:
        raise ValueError(f"{item.path} must set exactly one of: extension, pattern")

    matcher: Any
    if has_extension:
        matcher = item.get_str("extension")
        if not str(matcher).startswith("."):
            raise ValueError(f"{item.path}.extension must start with '.' (got {matcher!r})")
    else:
        matcher = item.get_pattern("pattern")

    steps = item.get_list_str("steps")
    item.assert_consumed()

    if PROFILER_STEP_ID in steps:
        warnings.append(
            f"{item.path}.steps lists {PROFILER_STEP_ID}, which is always prepended; "
            "the explicit entry is dropped"
        )
        steps = [step_id for step_id in steps if step_id != PROFILER_STEP_ID]
        if not steps:
            raise ValueError(f"{item.path}.steps cannot be empty")

    try:
        return ChainEntry(matcher=matcher, chain=tuple(steps))
    except ValueError as exc:
        raise ValueError(f"{item.path}: {exc}") from exc
