"""Runtime infrastructure for tillrules.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Campaign and cart loading from TOML
- The caller-owned EngineCache

Usage:
    from tillrules.runtime import get_logger, get_paths, load_campaign

    logger = get_logger(__name__)
    campaign = load_campaign(get_paths().campaign_file("promo-default"))
"""

from tillrules.runtime.campaign_loader import CartFile, load_campaign, load_campaigns_dir, load_cart
from tillrules.runtime.engine_cache import EngineCache
from tillrules.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from tillrules.runtime.paths import ProjectPaths, get_paths, reset_paths

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Loading
    "CartFile",
    "load_campaign",
    "load_campaigns_dir",
    "load_cart",
    # Engines
    "EngineCache",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
]
