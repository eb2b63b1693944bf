"""The unit of work flowing through a chain."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class Artifact:
    """A source file and everything steps have attached to it so far.

    Artifacts compare by value but are unhashable, since `metadata` is a dict.
    """

    __hash__ = None  # type: ignore[assignment]

    input_path: str
    content: str | bytes | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    outputs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.input_path, str):
            raise TypeError(
                f"Artifact input_path must be a string (type={type(self.input_path).__name__})"
            )
        if not self.input_path.strip():
            raise ValueError("Artifact input_path cannot be empty")
        if self.content is not None and not isinstance(self.content, (str, bytes)):
            raise TypeError(
                f"Artifact content must be str, bytes or None (type={type(self.content).__name__})"
            )
        if not isinstance(self.metadata, Mapping):
            raise TypeError(
                f"Artifact metadata must be a mapping (type={type(self.metadata).__name__})"
            )
        object.__setattr__(self, "metadata", dict(self.metadata))

        outputs = tuple(self.outputs)
        for idx, item in enumerate(outputs):
            if not isinstance(item, str) or not item.strip():
                raise ValueError(f"Artifact outputs[{idx}] must be a non-empty string")
        object.__setattr__(self, "outputs", outputs)

    @property
    def extension(self) -> str:
        return os.path.splitext(self.input_path)[1]

    def with_content(self, content: str | bytes | None) -> "Artifact":
        return replace(self, content=content)

    def with_metadata(self, **updates: Any) -> "Artifact":
        return self.merge_metadata(updates)

    def merge_metadata(self, updates: Mapping[str, Any]) -> "Artifact":
        merged = dict(self.metadata)
        merged.update(updates)
        return replace(self, metadata=merged)

    def without_metadata(self, *keys: str) -> "Artifact":
        remaining = {k: v for k, v in self.metadata.items() if k not in keys}
        return replace(self, metadata=remaining)

    def with_output(self, descriptor: str) -> "Artifact":
        return replace(self, outputs=(*self.outputs, descriptor))
