"""Utility helpers: configuration and logging."""

from .config import DEFAULT_CONFIG, AttrDict, load_config, merge_configs, read_yaml
from .logger import configure_logging, get_logger

__all__ = [
    "DEFAULT_CONFIG",
    "AttrDict",
    "load_config",
    "merge_configs",
    "read_yaml",
    "configure_logging",
    "get_logger",
]
