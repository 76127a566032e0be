"""Utility helpers shared across the index builder."""

from .config import BuildConfig, load_config
from .logging import configure_logging, get_logger
from .parallel import gather_bounded
from .paths import normalise_path, resolve_under

__all__ = [
    "BuildConfig",
    "load_config",
    "configure_logging",
    "get_logger",
    "gather_bounded",
    "normalise_path",
    "resolve_under",
]
