"""Common utilities: config, logging, time."""

from matchboard.common.config import AppConfig, load_config
from matchboard.common.logging import bind_context, get_logger, setup_logging
from matchboard.common.time_utils import (
    format_instant,
    from_millis,
    now_millis,
    parse_instant,
    to_millis,
    utc_now,
)

__all__ = [
    "AppConfig",
    "load_config",
    "setup_logging",
    "bind_context",
    "get_logger",
    "utc_now",
    "now_millis",
    "to_millis",
    "from_millis",
    "format_instant",
    "parse_instant",
]
