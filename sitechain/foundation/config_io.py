"""Locate and read the YAML file(s) that hold the `pipeline` section."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "SITECHAIN_CONFIG"
REPO_MARKERS = ("pyproject.toml", ".git")
CONFIG_FILES = ("config.yaml", "config.local.yaml")


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    origin = Path(start or os.getcwd()).resolve()
    if origin.is_file():
        origin = origin.parent

    for candidate in (origin, *origin.parents):
        if any((candidate / marker).exists() for marker in REPO_MARKERS):
            return str(candidate)
    raise FileNotFoundError(f"No {' or '.join(REPO_MARKERS)} found above {origin}")


def load_yaml_mapping(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        try:
            payload = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def deep_merge(base: Any, overlay: Any, *, path: str = "") -> Any:
    """Overlay `overlay` onto `base`; mappings merge key by key, anything else replaces."""

    if not isinstance(base, Mapping):
        return overlay
    if not isinstance(overlay, Mapping):
        raise ValueError(
            f"Invalid config overlay merge at {path or '<root>'}: "
            f"cannot replace a mapping with {type(overlay).__name__}"
        )

    merged = dict(base)
    for key, value in overlay.items():
        child_path = f"{path}.{key}" if path else str(key)
        merged[key] = deep_merge(base[key], value, path=child_path) if key in base else value
    return merged


def _requested_path(config_path: Any, env_var: str | None) -> str | None:
    if config_path is not None:
        raw = str(config_path)
    elif env_var:
        raw = os.environ.get(env_var, "")
    else:
        raw = ""
    raw = raw.strip()
    if not raw:
        return None
    return os.path.abspath(os.path.expandvars(os.path.expanduser(raw)))


def load_config(
    config_path: str | os.PathLike[str] | None = None,
    *,
    env_var: str | None = CONFIG_ENV_VAR,
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load the pipeline configuration.

    An explicit `config_path` (or the env var) loads that single file. Otherwise
    `<repo_root>/config/config.yaml` is loaded, with `config/config.local.yaml`
    merged on top when present. A missing default file yields an empty config.
    """

    requested = _requested_path(config_path, env_var)
    if requested:
        mode = "explicit" if config_path is not None else "env"
        return load_yaml_mapping(requested), {"mode": mode, "paths": [requested], "env_var": env_var}

    repo_root = find_repo_root(start_dir)
    cfg: dict[str, Any] = {}
    paths: list[str] = []
    for name in CONFIG_FILES:
        candidate = os.path.join(repo_root, "config", name)
        if os.path.isfile(candidate):
            cfg = deep_merge(cfg, load_yaml_mapping(candidate))
            paths.append(candidate)

    return cfg, {"mode": "repo", "paths": paths, "env_var": env_var, "repo_root": repo_root}
