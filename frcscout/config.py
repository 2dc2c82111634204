"""Scouting configuration management."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from .constants import SEASON_POINT_VALUES
from .schemas import PointValues, ScoutingConfig
from .utils import load_json

CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'scouting_config.json'


@lru_cache(maxsize=1)
def get_config() -> ScoutingConfig:
    """
    Load scouting configuration from data/scouting_config.json.

    Configuration is cached after first load.

    Returns:
        ScoutingConfig object with validated settings

    Raises:
        FileNotFoundError: If scouting_config.json doesn't exist
        ValueError: If config file has invalid structure

    Example:
        from frcscout.config import get_config
        config = get_config()
        print(f"Current season: {config.current_season}")
    """
    return load_json(CONFIG_PATH, schema=ScoutingConfig)


def get_current_season() -> int:
    """Get the current season from config."""
    return get_config().current_season


@lru_cache(maxsize=8)
def get_point_values(season: Optional[int] = None) -> PointValues:
    """
    Get the point table for a season.

    Overrides from the config file only apply to the current season.

    Args:
        season: Season year (default: current season from config)

    Raises:
        KeyError: If no point table exists for the season
    """
    config = get_config()
    if season is None:
        season = config.current_season
    if season not in SEASON_POINT_VALUES:
        raise KeyError(f'No point values defined for season {season}')

    values = dict(SEASON_POINT_VALUES[season])
    if season == config.current_season:
        values.update(config.point_overrides)
    return PointValues(**values)


def clear_config_cache() -> None:
    """
    Clear the configuration caches.

    Use this if the config file is modified during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
    get_point_values.cache_clear()
