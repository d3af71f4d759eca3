"""
Analysis settings.

Defaults live in `AnalysisConfig`; `load_config` overlays the values found
in the `[analysis]` section of an INI file.

    [analysis]
    max_points = 40
    kvl_tolerance = 1e-9
    debug = false
"""
import configparser
import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger('kvlmesh.config')

CONFIG_SECTION = "analysis"

DEFAULT_KVL_TOLERANCE = 1e-9


@dataclass
class AnalysisConfig:
    # Path enumeration is exponential; None leaves the graph size unbounded
    max_points: Optional[int] = None
    kvl_tolerance: float = DEFAULT_KVL_TOLERANCE
    debug: bool = False


def load_config(path: Optional[str]) -> AnalysisConfig:
    """Reads an INI file into an AnalysisConfig, keeping defaults for anything missing."""
    config = AnalysisConfig()
    if not path:
        return config

    if not os.path.exists(path):
        logger.warning(f"Config file '{path}' not found. Using default analysis settings.")
        return config

    parser = configparser.ConfigParser()
    parser.read(path)

    if CONFIG_SECTION not in parser:
        logger.warning(f"'{path}' has no '[{CONFIG_SECTION}]' section. Using default analysis settings.")
        return config

    section = parser[CONFIG_SECTION]
    max_points = section.getint('max_points', fallback=None)
    config.max_points = max_points if max_points and max_points > 0 else None
    config.kvl_tolerance = section.getfloat('kvl_tolerance', fallback=DEFAULT_KVL_TOLERANCE)
    config.debug = section.getboolean('debug', fallback=False)
    logger.debug(f"Loaded analysis settings from {path}: {config}")
    return config
