"""Strict configuration namespace helper for `chainkit` consumers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    if not parent:
        return key
    return f"{parent}.{key}"


@dataclass
class ConfigNamespace:
    """Typed accessors over a config mapping with consumed-keys enforcement."""

    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: dict[str, "ConfigNamespace"] = field(default_factory=dict, init=False, repr=False)

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(str(k) for k in self.data.keys() if k not in self._consumed))

    def assert_consumed(self) -> None:
        unknown = list(self.unconsumed_keys())
        if unknown:
            path = self.path or "<root>"
            consumed = ", ".join(self.consumed_keys()) or "<none>"
            raise ValueError(
                f"Unknown config keys under {path}: {', '.join(unknown)} (consumed: {consumed})"
            )
        for child in self._children.values():
            child.assert_consumed()

    def has(self, key: str) -> bool:
        return key.strip() in self.data

    def _key_path(self, key: str) -> str:
        return _join_path(self.path, key.strip())

    def _get_raw(self, key: str, *, default: Any) -> Any:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("ConfigNamespace key must be a non-empty string")
        normalized = key.strip()
        if normalized in self._children:
            raise ValueError(f"{self._key_path(normalized)} already accessed as a nested namespace")

        self._consumed.add(normalized)
        if normalized not in self.data:
            if default is _MISSING:
                raise ValueError(f"Missing required config key: {self._key_path(normalized)}")
            return default
        return self.data.get(normalized)

    def namespace(self, key: str, *, required: bool = False) -> "ConfigNamespace":
        normalized = (key or "").strip()
        if not normalized:
            raise TypeError("ConfigNamespace key must be a non-empty string")
        if normalized in self._children:
            return self._children[normalized]

        raw = self._get_raw(normalized, default=_MISSING if required else None)
        if raw is None:
            if required:
                raise ValueError(f"Missing required config namespace: {self._key_path(normalized)}")
            raw = {}
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"{self._key_path(normalized)} must be a mapping (type={type(raw).__name__})"
            )

        child = ConfigNamespace(dict(raw), path=self._key_path(normalized))
        self._children[normalized] = child
        return child

    def get_bool(self, key: str, *, default: bool | object = _MISSING) -> bool:
        if default is not _MISSING and not isinstance(default, bool):
            raise TypeError(f"{self._key_path(key)} default must be a boolean")

        value = self._get_raw(key, default=default)
        if not isinstance(value, bool):
            raise TypeError(f"{self._key_path(key)} must be a boolean (type={type(value).__name__})")
        return value

    def get_optional_int(
        self,
        key: str,
        *,
        default: int | None | object = _MISSING,
        min_value: int | None = None,
    ) -> int | None:
        raw = self._get_raw(key, default=default)
        if raw is None:
            return None
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise TypeError(
                f"{self._key_path(key)} must be an int or null (type={type(raw).__name__})"
            )
        if min_value is not None and raw < int(min_value):
            raise ValueError(f"{self._key_path(key)} must be >= {int(min_value)} (got {raw})")
        return raw

    def get_str(
        self,
        key: str,
        *,
        default: str | None | object = _MISSING,
        choices: Iterable[str] | None = None,
    ) -> str | None:
        raw = self._get_raw(key, default=default)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise TypeError(f"{self._key_path(key)} must be a string (type={type(raw).__name__})")
        value = raw.strip()
        if not value:
            raise ValueError(f"{self._key_path(key)} cannot be empty")
        if choices is not None:
            choice_set = {str(item).strip() for item in choices if str(item).strip()}
            if value not in choice_set:
                allowed = ", ".join(sorted(choice_set)) or "<none>"
                raise ValueError(f"{self._key_path(key)} must be one of: {allowed} (got {value!r})")
        return value

    def get_pattern(self, key: str) -> re.Pattern[str]:
        """Read a required string and compile it as a regular expression."""

        source = self.get_str(key)
        try:
            return re.compile(source or "")
        except re.error as exc:
            raise ValueError(f"{self._key_path(key)} is not a valid regular expression: {exc}") from exc

    def get_list_str(
        self,
        key: str,
        *,
        default: list[str] | tuple[str, ...] | object = _MISSING,
        allow_empty: bool = False,
    ) -> list[str]:
        raw = self._get_raw(key, default=default)
        if not isinstance(raw, (list, tuple)):
            raise TypeError(f"{self._key_path(key)} must be a list[str] (type={type(raw).__name__})")

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str):
                raise TypeError(
                    f"{self._key_path(key)}[{idx}] must be a string (type={type(item).__name__})"
                )
            trimmed = item.strip()
            if not trimmed:
                raise ValueError(f"{self._key_path(key)}[{idx}] cannot be empty")
            items.append(trimmed)

        if not items and not allow_empty:
            raise ValueError(f"{self._key_path(key)} cannot be empty")
        return items

    def get_list_mapping(
        self,
        key: str,
        *,
        default: list[Mapping[str, Any]] | tuple[Mapping[str, Any], ...] | object = _MISSING,
    ) -> list["ConfigNamespace"]:
        """Parse a list of mappings into child namespaces (`path.key[i]`)."""

        raw = self._get_raw(key, default=default)
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise TypeError(f"{self._key_path(key)} must be a list[dict] (type={type(raw).__name__})")

        items: list[ConfigNamespace] = []
        for idx, item in enumerate(raw):
            item_path = f"{self._key_path(key)}[{idx}]"
            if not isinstance(item, Mapping):
                raise TypeError(f"{item_path} must be a mapping (type={type(item).__name__})")
            items.append(ConfigNamespace(dict(item), path=item_path))

        return items
