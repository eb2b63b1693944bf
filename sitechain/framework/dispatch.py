"""Path-to-chain dispatch.

A `ChainTable` is an ordered, immutable list of `(matcher, chain)` entries. Caller
entries come first, built-in entries after; the first entry that matches a path
wins and there is no ranking beyond that order, so a broad pattern registered early
shadows a more specific one registered later.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias, Union

from chainkit.errors import StepContractViolation
from chainkit.step_registry import StepRegistry

logger = logging.getLogger(__name__)

PROFILER_STEP_ID = "Profiler"

Matcher: TypeAlias = Union[str, "re.Pattern[str]"]
EntriesLike: TypeAlias = Union[
    Mapping[Matcher, Sequence[str]],
    Iterable[Union["ChainEntry", tuple[Matcher, Sequence[str]]]],
]


@dataclass(frozen=True)
class ChainEntry:
    matcher: Matcher
    chain: tuple[str, ...]

    def __post_init__(self) -> None:
        if isinstance(self.matcher, str):
            suffix = self.matcher.strip()
            if not suffix.startswith(".") or len(suffix) < 2:
                raise ValueError(f"Extension matcher must look like '.ext' (got {self.matcher!r})")
            object.__setattr__(self, "matcher", suffix)
        elif not isinstance(self.matcher, re.Pattern):
            raise TypeError(
                f"Matcher must be an extension string or a compiled pattern (type={type(self.matcher).__name__})"
            )

        if isinstance(self.chain, str) or not isinstance(self.chain, (list, tuple)):
            raise TypeError(f"Chain for {self.label} must be a list of step ids")
        chain = tuple(self.chain)
        seen: set[str] = set()
        for idx, step_id in enumerate(chain):
            if not isinstance(step_id, str) or not step_id.strip():
                raise ValueError(f"Chain for {self.label}[{idx}] must be a non-empty string")
            if step_id in seen:
                raise ValueError(f"Duplicate step id in chain for {self.label}: {step_id}")
            seen.add(step_id)
        object.__setattr__(self, "chain", chain)

    @property
    def label(self) -> str:
        if isinstance(self.matcher, str):
            return self.matcher
        return f"/{self.matcher.pattern}/"

    def matches(self, path: str) -> bool:
        if isinstance(self.matcher, str):
            return os.path.splitext(path)[1] == self.matcher
        return self.matcher.search(path) is not None


def _coerce_entries(entries: EntriesLike | None) -> tuple[ChainEntry, ...]:
    if entries is None:
        return ()
    items: Iterable[Any] = entries.items() if isinstance(entries, Mapping) else entries
    out: list[ChainEntry] = []
    for item in items:
        if isinstance(item, ChainEntry):
            out.append(item)
            continue
        if not isinstance(item, tuple) or len(item) != 2:
            raise TypeError(f"Chain entries must be ChainEntry or (matcher, chain) pairs (got {item!r})")
        matcher, chain = item
        out.append(ChainEntry(matcher=matcher, chain=chain))
    return tuple(out)


@dataclass(frozen=True)
class ChainTable:
    entries: tuple[ChainEntry, ...] = ()

    @classmethod
    def build(
        cls, user_entries: EntriesLike | None = None, builtin_entries: EntriesLike | None = None
    ) -> "ChainTable":
        return cls(entries=(*_coerce_entries(user_entries), *_coerce_entries(builtin_entries)))

    def find(self, path: str) -> ChainEntry | None:
        for entry in self.entries:
            if entry.matches(path):
                return entry
        return None

    def resolve(self, path: str) -> tuple[str, ...]:
        if not isinstance(path, str) or not path.strip():
            raise ValueError("path must be a non-empty string")
        entry = self.find(path)
        if entry is None:
            logger.warning("No preprocessing chain matches %s", path)
            return ()
        return (PROFILER_STEP_ID, *entry.chain)

    def step_ids(self) -> tuple[str, ...]:
        ordered: dict[str, None] = {PROFILER_STEP_ID: None}
        for entry in self.entries:
            for step_id in entry.chain:
                ordered.setdefault(step_id, None)
        return tuple(ordered)

    def validate(self, registry: StepRegistry) -> None:
        referenced_by: dict[str, list[str]] = {}
        for entry in self.entries:
            for step_id in registry.missing(entry.chain):
                referenced_by.setdefault(step_id, []).append(entry.label)
        if PROFILER_STEP_ID not in registry:
            referenced_by.setdefault(PROFILER_STEP_ID, []).append("<every chain>")
        if referenced_by:
            details = "; ".join(
                f"{step_id} (used by {', '.join(labels)})" for step_id, labels in referenced_by.items()
            )
            first = next(iter(referenced_by))
            raise StepContractViolation(first, f"unregistered step id(s): {details}")

    def describe(self) -> tuple[dict[str, Any], ...]:
        return tuple(
            {
                "matcher": entry.label,
                "kind": "extension" if isinstance(entry.matcher, str) else "pattern",
                "chain": [PROFILER_STEP_ID, *entry.chain],
            }
            for entry in self.entries
        )
