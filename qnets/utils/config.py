"""
YAML configuration
==================

A config is a YAML mapping read into an ``AttrDict``::

    config = load_config("run.yaml")
    config.network.h1            # same as config["network"]["h1"]

User files only list the keys they change: ``load_config`` starts from
the ``default.yaml`` shipped inside the package and deep-merges the user
file, then any in-code overrides, on top of it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"


class AttrDict(dict):
    """Mapping with attribute access; nested dicts become ``AttrDict`` on construction."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        for key, value in self.items():
            if isinstance(value, dict) and not isinstance(value, AttrDict):
                self[key] = AttrDict(value)

    def __getattr__(self, key: str) -> Any:
        try:
            return self[key]
        except KeyError:
            raise AttributeError(f"config has no key '{key}'") from None

    def __setattr__(self, key: str, value: Any) -> None:
        self[key] = AttrDict(value) if isinstance(value, dict) else value

    def __delattr__(self, key: str) -> None:
        del self[key]


def read_yaml(path: Path | str) -> AttrDict:
    """Read one YAML file whose top level is a mapping."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    with path.open("r") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(raw).__name__}")
    return AttrDict(raw)


def merge_configs(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> AttrDict:
    """Deep-merge *overrides* into a copy of *base*; neither input is modified."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return AttrDict(merged)


def load_config(
    path: Path | str | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AttrDict:
    """Packaged defaults, then the file at *path*, then *overrides*.

    Args:
        path: Optional user YAML file.
        overrides: Optional nested mapping applied last.

    Returns:
        AttrDict with nested attribute access.
    """
    config = read_yaml(DEFAULT_CONFIG)
    if path is not None:
        config = merge_configs(config, read_yaml(path))
        logger.debug(f"Config loaded from {path}")
    if overrides:
        config = merge_configs(config, overrides)
    return config
