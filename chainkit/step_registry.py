from __future__ import annotations

import difflib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from chainkit.errors import StepContractViolation
from chainkit.step_types import Runnable, Step, StepRef


@dataclass(frozen=True)
class StepRegistry:
    _by_id: dict[str, StepRef]

    @classmethod
    def from_refs(cls, refs: Iterable[StepRef]) -> "StepRegistry":
        entries: dict[str, StepRef] = {}
        for ref in refs:
            if not isinstance(ref, StepRef):
                raise TypeError(f"StepRegistry entries must be StepRef (type={type(ref).__name__})")
            if ref.id in entries:
                raise ValueError(f"Duplicate step id: {ref.id}")
            entries[ref.id] = ref
        return cls(_by_id=entries)

    @classmethod
    def from_steps(cls, steps: Iterable[Step | StepRef]) -> "StepRegistry":
        return cls.from_refs(item if isinstance(item, StepRef) else StepRef.of(item) for item in steps)

    def merged(self, extra: Iterable[Step | StepRef]) -> "StepRegistry":
        """Return a new registry with `extra` added; this registry is left as is."""

        added = StepRegistry.from_steps(extra)
        clashes = sorted(set(self._by_id) & set(added._by_id))
        if clashes:
            raise ValueError(f"Duplicate step id(s): {', '.join(clashes)}")
        return StepRegistry(_by_id={**self._by_id, **added._by_id})

    def __contains__(self, step_id: object) -> bool:
        return isinstance(step_id, str) and step_id.strip() in self._by_id

    def available(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_id.keys()))

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for ref in sorted(self._by_id.values(), key=lambda r: r.id):
            rows.append(
                {
                    "step_id": ref.id,
                    "doc": ref.doc,
                    "source": ref.source,
                    "tags": list(ref.tags),
                }
            )
        return tuple(rows)

    def ref(self, step_id: str) -> StepRef:
        if not isinstance(step_id, str) or not step_id.strip():
            raise StepContractViolation(repr(step_id), "step id must be a non-empty string")
        ref = self._by_id.get(step_id.strip())
        if ref is None:
            suggestions = self.suggest(step_id)
            hint = f" (did you mean: {', '.join(suggestions)})" if suggestions else ""
            raise StepContractViolation(step_id, f"no step registered under this id{hint}")
        return ref

    def get(self, step_id: str) -> Runnable:
        return self.ref(step_id).step

    def missing(self, chain: Sequence[str]) -> tuple[str, ...]:
        return tuple(step_id for step_id in chain if step_id not in self)

    def validate_chain(self, chain: Sequence[str]) -> None:
        missing = self.missing(chain)
        if missing:
            raise StepContractViolation(
                missing[0], f"unregistered step id(s) in chain: {', '.join(missing)}"
            )

    def suggest(self, step_id: str, *, limit: int = 3) -> tuple[str, ...]:
        key = (step_id or "").strip()
        if not key:
            return ()
        available = self.available()
        if not available:
            return ()

        exact_ci = [s for s in available if s.lower() == key.lower()]
        if exact_ci:
            return tuple(exact_ci[:limit])
        return tuple(difflib.get_close_matches(key, list(available), n=limit))
