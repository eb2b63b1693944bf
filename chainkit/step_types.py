from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, TypeAlias

from chainkit.artifact import Artifact
from chainkit.errors import StepContractViolation, enrich

if TYPE_CHECKING:
    from chainkit.engine.runner import ChainRunner


def _as_artifacts(value: Any, *, label: str) -> tuple[Artifact, ...]:
    if isinstance(value, Artifact):
        return (value,)
    if isinstance(value, (list, tuple)):
        for idx, item in enumerate(value):
            if not isinstance(item, Artifact):
                raise TypeError(
                    f"{label}[{idx}] must be an Artifact (type={type(item).__name__})"
                )
        return tuple(value)
    raise TypeError(f"{label} must be an Artifact or a list of Artifacts (type={type(value).__name__})")


@dataclass(frozen=True)
class Continue:
    """Send the wrapped artifact(s) into the rest of the chain."""

    value: Artifact | Sequence[Artifact]

    def artifacts(self) -> tuple[Artifact, ...]:
        return _as_artifacts(self.value, label="Continue value")


@dataclass(frozen=True)
class Halt:
    """Return the wrapped artifact(s) without running the rest of the chain."""

    value: Artifact | Sequence[Artifact]

    def artifacts(self) -> tuple[Artifact, ...]:
        return _as_artifacts(self.value, label="Halt value")


Outcome: TypeAlias = Artifact | Continue | Halt | Sequence[Artifact]


def normalize_outcome(outcome: Any, *, step_id: str) -> tuple[bool, tuple[Artifact, ...]]:
    """Return `(halted, artifacts)` for a transform result."""

    if isinstance(outcome, Halt):
        return True, outcome.artifacts()
    if isinstance(outcome, Continue):
        return False, outcome.artifacts()
    if outcome is None:
        raise TypeError(f"Step {step_id} transform returned None")
    return False, _as_artifacts(outcome, label=f"Step {step_id} transform result")


class Runnable(Protocol):
    def run(
        self,
        artifact: Artifact,
        remaining: Sequence[str] = (),
        *,
        runner: "ChainRunner | None" = None,
    ) -> list[Artifact]:
        ...


class Step:
    """Base class for chain steps.

    Subclasses override `transform` and/or `after_transform`; both default to the
    identity. `run` drives the step and the remaining chain and is what the runner
    calls.
    """

    step_id: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("step_id"):
            cls.step_id = cls.__name__

    def transform(self, artifact: Artifact) -> Outcome:
        return artifact

    def after_transform(self, artifact: Artifact) -> Artifact:
        return artifact

    def run(
        self,
        artifact: Artifact,
        remaining: Sequence[str] = (),
        *,
        runner: "ChainRunner | None" = None,
    ) -> list[Artifact]:
        remaining = tuple(remaining)
        if remaining and runner is None:
            raise TypeError(f"Step {self.step_id} needs a runner to continue into {list(remaining)}")

        try:
            halted, produced = normalize_outcome(self.transform(artifact), step_id=self.step_id)
            for item in produced:
                if item.input_path != artifact.input_path:
                    raise StepContractViolation(
                        self.step_id,
                        f"input_path changed from {artifact.input_path!r} to {item.input_path!r}",
                    )

            if halted or not remaining:
                results = list(produced)
            else:
                assert runner is not None
                results = runner.continue_chain(produced, remaining)

            finished: list[Artifact] = []
            for item in results:
                hooked = self.after_transform(item)
                if not isinstance(hooked, Artifact):
                    raise TypeError(
                        f"Step {self.step_id} after_transform returned non-Artifact "
                        f"(type={type(hooked).__name__})"
                    )
                if hooked.input_path != artifact.input_path:
                    raise StepContractViolation(
                        self.step_id,
                        f"after_transform changed input_path from {artifact.input_path!r} "
                        f"to {hooked.input_path!r}",
                    )
                finished.append(hooked)
            return finished
        except Exception as exc:
            enriched = enrich(exc, step_id=self.step_id, remaining=remaining, artifact=artifact)
            if enriched is exc:
                raise
            raise enriched from exc


@dataclass(frozen=True)
class StepRef:
    id: str
    step: Runnable
    doc: str | None = None
    source: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise TypeError("StepRef.id must be a non-empty string")
        object.__setattr__(self, "id", self.id.strip())

        run = getattr(self.step, "run", None)
        if run is None or not callable(run):
            raise StepContractViolation(self.id, "implementation has no callable run() entry point")

        if self.doc is not None and (not isinstance(self.doc, str) or not self.doc.strip()):
            raise TypeError("StepRef.doc must be a non-empty string or None")
        if self.source is None:
            cls = type(self.step)
            object.__setattr__(self, "source", f"{cls.__module__}.{cls.__qualname__}")
        elif not isinstance(self.source, str) or not self.source.strip():
            raise TypeError("StepRef.source must be a non-empty string or None")

        if self.tags:
            object.__setattr__(
                self, "tags", tuple(str(tag).strip() for tag in self.tags if str(tag).strip())
            )

    @classmethod
    def of(cls, step: Step, *, doc: str | None = None, tags: tuple[str, ...] = ()) -> "StepRef":
        if doc is None:
            raw = (type(step).__doc__ or "").strip()
            doc = raw.splitlines()[0].strip() if raw else None
        return cls(id=step.step_id, step=step, doc=doc, tags=tags)
